#!/usr/bin/env python3
"""
Wrapper script to run the API server from the project root.
"""
import os
import sys

project_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_dir)
os.chdir(project_dir)

try:
    from api.paceify_api import app
    port = int(os.environ.get('PORT', 5001))
    print(f"🚀 Starting Paceify API on http://0.0.0.0:{port}")
    print(f"📁 Working directory: {project_dir}")
    app.run(host='0.0.0.0', port=port, debug=True)
except ImportError as e:
    print("=" * 60)
    print("ERROR: Failed to start API")
    print("=" * 60)
    print(f"Error: {e}")
    print("\nPlease install the project dependencies:")
    print("  pip3 install -e .")
    print("=" * 60)
    sys.exit(1)
