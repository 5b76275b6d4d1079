#!/usr/bin/env python3
"""
Integration Test Suite for the Wedding Freelancer Directory

Usage:
    1. Start MongoDB and the service: uvicorn app.main:app --app-dir services/directory-service
    2. Install dependencies: pip install requests
    3. Run the script: python tests/integration_test.py

This script tests the full account lifecycle against a live deployment:
    - Profile creation with a login
    - Login / Change Password
    - Reviews
    - Account deletion cascade
    - Negative Tests

Output:
    - Console logs with pass/fail status
    - integration_test_results.json report
"""
import requests
import json
import os
import time
import sys
from datetime import datetime
from typing import Dict, Any

# Configuration
BASE_URL = os.getenv("DIRECTORY_URL", "http://localhost:8000")
RESULTS_FILE = "integration_test_results.json"

# Colors
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'

class TestRunner:
    def __init__(self):
        self.results = []
        self.session = requests.Session()
        self.store: Dict[str, Any] = {}
        self.start_time = time.time()

    def log(self, message: str, color: str = Colors.ENDC):
        print(f"{color}{message}{Colors.ENDC}")

    def save_result(self, name: str, status: str, duration: float, error: str = None):
        self.results.append({
            "test_name": name,
            "status": status,
            "duration": duration,
            "error": error,
            "timestamp": datetime.utcnow().isoformat()
        })
        color = Colors.GREEN if status == "PASS" else Colors.FAIL
        self.log(f"[{status}] {name} ({duration:.4f}s)", color)
        if error:
            self.log(f"  Error: {error}", Colors.FAIL)

    def run_test(self, name: str, func, *args, **kwargs):
        start = time.time()
        try:
            func(*args, **kwargs)
            self.save_result(name, "PASS", time.time() - start)
        except AssertionError as e:
            self.save_result(name, "FAIL", time.time() - start, str(e))
        except Exception as e:
            self.save_result(name, "ERROR", time.time() - start, str(e))

    def assert_status(self, response, expected: int):
        if response.status_code != expected:
            raise AssertionError(f"Expected status {expected}, got {response.status_code}. Body: {response.text}")

    def save_report(self):
        with open(RESULTS_FILE, "w") as f:
            json.dump({
                "summary": {
                    "total": len(self.results),
                    "passed": len([r for r in self.results if r["status"] == "PASS"]),
                    "failed": len([r for r in self.results if r["status"] != "PASS"]),
                    "total_duration": time.time() - self.start_time
                },
                "results": self.results
            }, f, indent=2)
        self.log(f"\nTest results saved to {RESULTS_FILE}", Colors.BLUE)

def freelancer_payload() -> Dict[str, Any]:
    return {
        "type": "makeup-artist",
        "specialized": ["bridal", "airbrush"],
        "rate": 120,
        "rateUnit": "session",
        "name": "Integration Test Artist",
        "bio": "Bridal looks that last all night",
        "showCase": "https://example.com/showcase/it",
        "socialMedia": {"instagram": "https://instagram.com/integration.test"},
        "contact": {"email": "artist@example.com"},
        "portfolios": [
            {"title": "Church wedding", "description": "Classic bridal", "url": "https://example.com/p/it"}
        ],
    }

# --- Test Functions ---

def test_health_check(runner: TestRunner):
    resp = runner.session.get(f"{BASE_URL}/health")
    runner.assert_status(resp, 200)
    if resp.json()["status"] != "healthy":
        raise AssertionError("Service is not healthy")

# Phase 1: Profile

def create_freelancer(runner: TestRunner):
    username = f"artist_{int(time.time())}"
    data = {**freelancer_payload(), "username": username, "password": "pw1"}
    resp = runner.session.post(f"{BASE_URL}/freelancer", json=data)
    runner.assert_status(resp, 201)
    runner.store["freelancer_id"] = resp.json()["freelancerId"]
    runner.store["username"] = username

def duplicate_username(runner: TestRunner):
    data = {**freelancer_payload(), "username": runner.store["username"], "password": "pw9"}
    resp = runner.session.post(f"{BASE_URL}/freelancer", json=data)
    runner.assert_status(resp, 400)

# Phase 2: Login

def login(runner: TestRunner):
    resp = runner.session.post(f"{BASE_URL}/login", json={
        "username": runner.store["username"],
        "password": "pw1"
    })
    runner.assert_status(resp, 200)
    if resp.json()["id"] != runner.store["freelancer_id"]:
        raise AssertionError("Login returned a different profile")

def change_password(runner: TestRunner):
    resp = runner.session.put(f"{BASE_URL}/change-password", json={
        "username": runner.store["username"],
        "currentPassword": "pw1",
        "newPassword": "pw2"
    })
    runner.assert_status(resp, 200)

    old = runner.session.post(f"{BASE_URL}/login", json={"username": runner.store["username"], "password": "pw1"})
    runner.assert_status(old, 401)
    new = runner.session.post(f"{BASE_URL}/login", json={"username": runner.store["username"], "password": "pw2"})
    runner.assert_status(new, 200)

# Phase 3: Reviews

def add_review(runner: TestRunner):
    fid = runner.store["freelancer_id"]
    resp = runner.session.post(f"{BASE_URL}/freelancer/{fid}/review", json={
        "reviewerName": "Integration Reviewer",
        "rating": 5,
        "recommend": True,
        "description": "Flawless"
    })
    runner.assert_status(resp, 201)

    resp = runner.session.get(f"{BASE_URL}/freelancer/{fid}/reviews")
    runner.assert_status(resp, 200)
    if len(resp.json()) != 1:
        raise AssertionError("Review not listed")

# Phase 4: Deletion

def delete_account(runner: TestRunner):
    fid = runner.store["freelancer_id"]
    body = {"reasonToLeave": "Integration test", "password": "pw2"}
    resp = runner.session.delete(f"{BASE_URL}/freelancer/{fid}", json=body)
    runner.assert_status(resp, 200)

def verify_cascade(runner: TestRunner):
    fid = runner.store["freelancer_id"]
    runner.assert_status(runner.session.get(f"{BASE_URL}/freelancer/{fid}"), 404)
    reviews = runner.session.get(f"{BASE_URL}/freelancer/{fid}/reviews")
    if reviews.json():
        raise AssertionError("Reviews left behind after deletion")
    resp = runner.session.post(f"{BASE_URL}/login", json={"username": runner.store["username"], "password": "pw2"})
    runner.assert_status(resp, 401)

# Phase 5: Negative Tests

def negative_tests(runner: TestRunner):
    resp = runner.session.post(f"{BASE_URL}/login", json={"username": "nobody", "password": "x"})
    runner.assert_status(resp, 401)
    if resp.json().get("error") != "Login failed":
        raise AssertionError("Login failure message should not vary")

    bad = {**freelancer_payload(), "rate": -10}
    resp = runner.session.post(f"{BASE_URL}/freelancer", json=bad)
    runner.assert_status(resp, 400)


def main():
    runner = TestRunner()
    runner.log("Starting Integration Tests...\n", Colors.HEADER)

    runner.run_test("Health Check", test_health_check, runner)

    runner.run_test("Create Freelancer", create_freelancer, runner)
    runner.run_test("Duplicate Username", duplicate_username, runner)

    runner.run_test("Login", login, runner)
    runner.run_test("Change Password", change_password, runner)

    runner.run_test("Add Review", add_review, runner)

    runner.run_test("Delete Account", delete_account, runner)
    runner.run_test("Verify Cascade", verify_cascade, runner)

    runner.run_test("Negative Tests", negative_tests, runner)

    runner.save_report()

    if any(r["status"] != "PASS" for r in runner.results):
        sys.exit(1)

if __name__ == "__main__":
    main()
