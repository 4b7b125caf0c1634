"""
End-to-end smoke test against a running server

Walks through the resident and RW admin journeys:
    uvicorn umkm_registry.main:app
    python scripts/smoke_flow.py [BASE_URL]
"""

import json
import sys
import uuid

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000/api/v1"


def print_section(title):
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80)


def print_response(response):
    print(f"HTTP {response.status_code}")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))


def main():
    username = f"warga-{uuid.uuid4().hex[:6]}"
    password = "rahasia123"

    print_section("STEP 1: Register resident")
    response = requests.post(f"{BASE_URL}/auth/register", json={
        "username": username, "password": password, "name": "Warga Uji", "rw": "01"
    })
    print_response(response)
    if response.status_code != 201:
        return 1

    print_section("STEP 2: Login")
    response = requests.post(f"{BASE_URL}/auth/login", json={"username": username, "password": password})
    print_response(response)
    if response.status_code != 200:
        return 1
    resident = {"Authorization": f"Bearer {response.json()['token']}"}

    print_section("STEP 3: Register a business")
    response = requests.post(f"{BASE_URL}/umkm", headers=resident, json={
        "nama_usaha": "Toko Bunga",
        "pemilik": "Warga Uji",
        "jenis_usaha": "Retail",
        "status": "active",
        "modal_awal": 2500000
    })
    print_response(response)
    if response.status_code != 201:
        return 1
    umkm_id = response.json()["id"]

    print_section("STEP 4: Update it")
    response = requests.patch(f"{BASE_URL}/umkm/{umkm_id}", headers=resident, json={"jumlah_karyawan": 3})
    print_response(response)

    print_section("STEP 5: RW 01 admin view")
    admin_password = input("RW 01 admin password (Enter for default 'admin'): ").strip() or "admin"
    response = requests.post(f"{BASE_URL}/auth/login", json={
        "username": "admin", "password": admin_password, "rw": "01"
    })
    print_response(response)
    if response.status_code == 200:
        admin = {"Authorization": f"Bearer {response.json()['token']}"}
        print_response(requests.get(f"{BASE_URL}/umkm", headers=admin))
        print_response(requests.get(f"{BASE_URL}/users", headers=admin))

    print_section("STEP 6: Clean up")
    print_response(requests.delete(f"{BASE_URL}/umkm/{umkm_id}", headers=resident))
    print_response(requests.post(f"{BASE_URL}/auth/logout", headers=resident))

    print("\nSmoke flow complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
