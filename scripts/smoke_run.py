"""Automated smoke-run for the recipe catalog.

Checks:
- loads .env
- validates store settings
- probes the configured store (both tables reachable)
- optionally starts uvicorn and checks /health if --start-server

Usage:
  python scripts/smoke_run.py [--start-server] [--ci]

Exit code: 0 on success (all checks), non-zero if any step fails.
"""

import json
import os
import subprocess
import sys
import time
from pathlib import Path

import requests
from dotenv import load_dotenv

load_dotenv()
ROOT = Path(__file__).resolve().parents[1]
PY = sys.executable
sys.path.insert(0, str(ROOT))

from recipe_catalog.settings import reload_settings, validate_required  # noqa: E402
from recipe_catalog.store.diagnostics import check_connection  # noqa: E402
from recipe_catalog.store.factory import make_store  # noqa: E402


def check_http(url='http://127.0.0.1:8000/health', timeout=5):
    print(f"\nChecking HTTP {url} ...")
    try:
        resp = requests.get(url, timeout=timeout)
        print(f"HTTP {resp.status_code} {resp.reason}")
        print(resp.text[:1000])
        return resp.ok
    except requests.RequestException as e:
        print("HTTP check failed:", e)
        return False


if __name__ == '__main__':
    start_server = '--start-server' in sys.argv
    ci_mode = '--ci' in sys.argv

    print('Python:', PY)
    print('Project root:', ROOT)
    print('STORE_BACKEND:', os.getenv('STORE_BACKEND', 'sqlite'))

    failed = False
    store_ok = False

    # 1. settings
    reload_settings()
    try:
        validate_required()
        print('settings: OK')
    except RuntimeError as e:
        print('settings FAILED:', e)
        failed = True

    # 2. store probe
    if not failed:
        try:
            result = check_connection(make_store())
        except Exception as e:
            result = {"success": False, "error": str(e), "suggestion": "Check store settings"}
        print(json.dumps(result, indent=2))
        store_ok = result["success"]
        failed = failed or not store_ok

    # 3. optional: start uvicorn and check /health
    if start_server:
        print('\nStarting uvicorn (background) ...')
        server_proc = subprocess.Popen([PY, '-m', 'uvicorn', 'recipe_catalog.main:app', '--port', '8000'], cwd=str(ROOT))
        time.sleep(2)
        if not check_http():
            print('Server check failed after start')
            failed = True
        server_proc.terminate()
        try:
            server_proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            server_proc.kill()
    else:
        print('\nSkipping server start; will just probe localhost:8000 if already running')
        check_http()

    if ci_mode:
        print(json.dumps({"status": "fail" if failed else "success", "checks": {"store": store_ok}}))
    if failed:
        print('\nSMOKE RUN: FAIL')
        sys.exit(2)
    print('\nSMOKE RUN: SUCCESS')
    sys.exit(0)
