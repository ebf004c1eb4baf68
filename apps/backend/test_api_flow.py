import os
import sys
from datetime import date, timedelta

import requests

from services.auth import create_access_token

BASE_URL = "http://127.0.0.1:8765/api"

def run_test():
    print("🧪 STARTING BACKEND INTEGRATION TEST...")

    # 1. Health Check
    try:
        r = requests.get("http://127.0.0.1:8765/health")
        if r.status_code == 200:
            print(f"✅ Backend is UP (reminders: {r.json().get('reminders')})")
        else:
            print(f"❌ Backend failed health check: {r.status_code}")
            sys.exit(1)
    except Exception as e:
        print(f"❌ Could not connect to backend: {e}")
        sys.exit(1)

    # The server seeds DEFAULT_TEACHER_USERNAME on startup; sign a token for it with the same secret.
    username = os.getenv("DEFAULT_TEACHER_USERNAME", "teacher")
    secret = os.getenv("JWT_SECRET", "change-me-in-production")
    headers = {"Authorization": f"Bearer {create_access_token(username, 'TEACHER', secret)}"}

    lesson_day = date.today() + timedelta(days=14)
    payload = {
        "subject": "Math",
        "description": "Integration test lesson",
        "date": lesson_day.isoformat(),
        "startTime": "09:00",
        "endTime": "10:00",
        "classroom": "101",
        "type": "LECTURE",
    }

    # 2. Create
    print(f"🔹 Step 1: Creating lesson for {username} on {lesson_day}...")
    r = requests.post(f"{BASE_URL}/lessons", json=payload, headers=headers)
    if r.status_code == 201:
        lesson_id = r.json()["id"]
        print(f"✅ Lesson {lesson_id} created")
    else:
        print(f"❌ Create failed: {r.status_code} {r.text}")
        sys.exit(1)

    try:
        # 3. Overlap must be refused
        print("🔹 Step 2: Booking an overlapping slot...")
        r = requests.post(f"{BASE_URL}/lessons", json={**payload, "startTime": "09:30", "endTime": "10:30"}, headers=headers)
        if r.status_code == 409:
            print("✅ Overlap rejected with 409")
        else:
            print(f"❌ Expected 409, got {r.status_code}: {r.text}")
            sys.exit(1)

        # 4. Weekly view
        print("🔹 Step 3: Reading the weekly timetable...")
        r = requests.get(f"{BASE_URL}/lessons/week", params={"weekStartDate": lesson_day.isoformat()}, headers=headers)
        if r.status_code == 200 and any(l["id"] == lesson_id for l in r.json()):
            print("✅ Lesson present in weekly timetable")
        else:
            print(f"❌ Weekly timetable check failed: {r.text}")
            sys.exit(1)

        # 5. Status change
        print("🔹 Step 4: Cancelling lesson...")
        r = requests.patch(f"{BASE_URL}/lessons/{lesson_id}/status", json={"status": "CANCELLED"}, headers=headers)
        if r.status_code == 200 and r.json()["status"] == "CANCELLED":
            print("✅ Status updated")
        else:
            print(f"❌ Status update failed: {r.text}")
            sys.exit(1)
    finally:
        # 6. Clean up
        requests.delete(f"{BASE_URL}/lessons/{lesson_id}", headers=headers)

    r = requests.get(f"{BASE_URL}/lessons/{lesson_id}", headers=headers)
    if r.status_code == 404:
        print("✅ Lesson deleted")
    else:
        print(f"❌ Lesson still present after delete: {r.status_code}")
        sys.exit(1)

    print("\n🎉 ALL TESTS PASSED! Booking, conflict detection, status and delete work end to end.")

if __name__ == "__main__":
    run_test()
