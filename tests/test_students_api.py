# tests/test_students_api.py
from datetime import date


def test_create_and_get_student(auth_client, business_profile):
    business_profile()
    response = auth_client.post("/api/students/", json={
        "name": "  Aarav Shah ",
        "parent_name": "Meera Shah",
        "phone": "9876543210",
        "course": "Intermediate",
    })

    assert response.status_code == 201
    student = response.json()
    assert student["name"] == "Aarav Shah"
    assert student["fee_per_class"] == 1499

    fetched = auth_client.get(f"/api/students/{student['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["parent_name"] == "Meera Shah"


def test_blank_name_rejected(auth_client):
    response = auth_client.post("/api/students/", json={"name": "   "})
    assert response.status_code == 422


def test_search_matches_student_or_parent(auth_client, make_student):
    make_student("Aarav Shah", parent_name="Meera Shah")
    make_student("Ira Menon", parent_name="Rohan Menon")
    make_student("Kabir Rao", parent_name="Anita Rao")

    by_student = auth_client.get("/api/students/", params={"search": "ira"}).json()
    by_parent = auth_client.get("/api/students/", params={"search": "anita"}).json()
    everyone = auth_client.get("/api/students/").json()

    assert [s["name"] for s in by_student["students"]] == ["Ira Menon"]
    assert [s["name"] for s in by_parent["students"]] == ["Kabir Rao"]
    assert everyone["total"] == 3
    assert [s["name"] for s in everyone["students"]] == ["Aarav Shah", "Ira Menon", "Kabir Rao"]


def test_update_student(auth_client, make_student):
    student = make_student()
    response = auth_client.put(f"/api/students/{student.id}", json={"course": "Advanced", "phone": "9000000000"})

    assert response.status_code == 200
    assert response.json()["course"] == "Advanced"
    assert response.json()["phone"] == "9000000000"
    assert response.json()["name"] == "Aarav Shah"


def test_delete_student_keeps_invoices(auth_client, make_student, business_profile):
    business_profile()
    student = make_student()
    invoice = auth_client.post("/api/invoices/generate", json={
        "student_id": str(student.id), "end_month": 4, "end_year": 2024, "manual_class_count": 2
    }).json()

    assert auth_client.delete(f"/api/students/{student.id}").status_code == 200
    assert auth_client.get(f"/api/students/{student.id}").status_code == 404

    kept = auth_client.get(f"/api/invoices/{invoice['id']}").json()
    assert kept["student_snapshot"]["name"] == "Aarav Shah"


def test_month_attendance_routes(auth_client, make_student):
    student = make_student()
    base = f"/api/attendance/2024/3/{student.id}"

    empty = auth_client.get(base).json()
    assert empty["class_count"] == 0
    assert empty["id"] == f"{student.id}_03_2024"

    auth_client.post(f"{base}/sessions", json={"session_date": "2024-03-09", "topic": "Gears"})
    saved = auth_client.post(f"{base}/sessions", json={"session_date": date(2024, 3, 2).isoformat(), "topic": "Motors"})
    assert saved.status_code == 201
    assert [s["topic"] for s in saved.json()["sessions"]] == ["Motors", "Gears"]
    assert saved.json()["sessions"][0]["location"] == "MAKER WORKS"

    removed = auth_client.delete(f"{base}/sessions/1")
    assert removed.json()["class_count"] == 1
    assert auth_client.delete(f"{base}/sessions/7").status_code == 400

    roster = auth_client.get("/api/attendance/2024/3").json()
    assert list(roster["records"]) == [str(student.id)]


def test_month_roster_rejects_bad_month(auth_client):
    assert auth_client.get("/api/attendance/2024/13").status_code == 422


def test_save_month_roster(auth_client, make_student):
    a, b = make_student("A"), make_student("B")
    response = auth_client.put("/api/attendance/2024/4", json={"records": {
        str(a.id): [{"date": "2024-04-06", "topic": "LEDs"}],
        str(b.id): [{"date": "2024-04-06", "topic": "LEDs", "status": "cancelled"}],
    }})

    assert response.status_code == 200
    records = response.json()["records"]
    assert records[str(a.id)]["class_count"] == 1
    assert records[str(b.id)]["class_count"] == 0


def test_schedule_routes(auth_client, make_student):
    student = make_student()
    put = auth_client.put(f"/api/schedules/{student.id}", json={"slots": [
        {"weekday": 0, "time": "4:00 PM", "topic": "Drones"},
    ]})
    assert put.status_code == 200
    assert put.json()["slots"][0]["id"]

    duplicate = auth_client.put(f"/api/schedules/{student.id}", json={"slots": [
        {"weekday": 0, "time": "4:00 PM"}, {"weekday": 0, "time": "4:00 PM"},
    ]})
    assert duplicate.status_code == 400

    applied = auth_client.post(f"/api/schedules/{student.id}/apply", params={"today": "2024-03-13"})
    assert applied.status_code == 200
    # Sundays from 10 Mar: 10, 17, 24, 31
    assert applied.json()["added"] == 4
    assert applied.json()["record"]["class_count"] == 4
