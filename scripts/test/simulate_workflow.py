# scripts/test/simulate_workflow.py
"""Drive a running backend through the registration workflow: submit → review → renew."""

import argparse
import requests
import uuid
from datetime import datetime, timedelta

BACKEND_URL = "http://localhost:5000/api"


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def ensure_account(base, name, email, password, role="user", secret_key=None):
    body = {"name": name, "email": email, "password": password, "role": role, "secret_key": secret_key}
    resp = requests.post(f"{base}/auth/register", json=body, timeout=10)
    if resp.status_code == 409:
        resp = requests.post(f"{base}/auth/login", json={"email": email, "password": password}, timeout=10)
    resp.raise_for_status()
    data = resp.json()
    print(f"✅ {role} {email} → id={data['id']}")
    return data["token"]


def submit(base, token, plate, vin):
    form = {
        "vehicle_type": "Car", "make": "Toyota", "model": "Corolla", "year": "2021",
        "vin": vin, "license_plate": plate, "owner_name": "Test Owner",
        "owner_contact": "+1 555 0100",
        "expiry_date": (datetime.utcnow() + timedelta(days=365)).strftime("%Y-%m-%d"),
    }
    resp = requests.post(f"{base}/registrations", data=form, headers=_auth(token), timeout=10)
    print(f"✅ submit plate={plate} → HTTP {resp.status_code}: {resp.json()}")
    resp.raise_for_status()
    return resp.json()["id"]


def review(base, token, registration_id, status):
    resp = requests.put(f"{base}/registrations/{registration_id}/status",
                        json={"status": status}, headers=_auth(token), timeout=10)
    print(f"✅ review {registration_id} → {status}: HTTP {resp.status_code}")


def renew(base, token, registration_id):
    resp = requests.put(f"{base}/registrations/{registration_id}/renew", headers=_auth(token), timeout=10)
    print(f"✅ renew {registration_id} → HTTP {resp.status_code}: expiry={resp.json().get('expiry_date')}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate a registration workflow against the API")
    parser.add_argument("--url", default=BACKEND_URL)
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--admin-password", default="admin-pass")
    parser.add_argument("--secret-key", default=None)
    parser.add_argument("--status", default="Approved", choices=["Approved", "Rejected"])
    parser.add_argument("--plate", default=None)
    args = parser.parse_args()

    suffix = uuid.uuid4().hex[:6].upper()
    user_token = ensure_account(args.url, "Sim User", f"sim-{suffix.lower()}@example.com", "sim-pass")
    admin_token = ensure_account(args.url, "Sim Admin", args.admin_email, args.admin_password,
                                 role="admin", secret_key=args.secret_key)

    reg_id = submit(args.url, user_token, args.plate or f"SIM-{suffix}", f"VIN{suffix}0000000")
    review(args.url, admin_token, reg_id, args.status)
    renew(args.url, user_token, reg_id)
