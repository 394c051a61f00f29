#!/usr/bin/env python3
"""
healthcheck.py
- Basic healthcheck script for Docker HEALTHCHECK.
- Returns exit code 0 if the collector reports healthy, 1 if not.
- Queries the collector's own /healthz endpoint.
"""

import sys

import requests

from shard_collector.core.config import API_PORT


def check(url=f"http://localhost:{API_PORT}/healthz"):
    try:
        response = requests.get(url, timeout=3)
        return response.status_code == 200 and response.json().get("status") == "ok"
    except (requests.RequestException, ValueError) as e:
        print(f"❌ Healthcheck failed: {e}")
        return False


def main():
    if check():
        sys.exit(0)  # Healthy
    else:
        print("❌ Healthcheck failed: collector not healthy or not initialized")
        sys.exit(1)  # Unhealthy


if __name__ == "__main__":
    main()
