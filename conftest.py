"""Makes the flat-layout packages (api, cadence) and modules importable under pytest."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
