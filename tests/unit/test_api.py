"""
API tests against the FastAPI app with in-memory backends.

Settings are overridden to mock mode, so no Supabase project or storage
bucket is needed. Shared mock state is reset before each test.
"""

import pytest
from fastapi.testclient import TestClient

from coachdesk.api.dependencies import reset_mock_backends
from coachdesk.config.settings import Settings, get_settings
from coachdesk.main import app


API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}

TEST_SETTINGS = Settings(
    api_keys=API_KEY,
    database_mock_mode=True,
    storage_mock_mode=True,
    max_upload_size_mb=1,
)


@pytest.fixture
def client():
    reset_mock_backends()
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_mock_backends()


@pytest.fixture
def trainee(client) -> dict:
    response = client.post(
        "/api/v1/trainees/register",
        json={"full_name": "Dana Cole", "email": "dana@example.com", "password": "secret1"},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()


# ---------------------------------------------------------------------------
# Health and auth
# ---------------------------------------------------------------------------

class TestHealth:

    def test_liveness_needs_no_key(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["details"]["mock_mode"] == {"database": True, "storage": True}

    def test_ready_in_mock_mode(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestApiKey:

    def test_missing_key(self, client):
        assert client.get("/api/v1/exercises").status_code == 403

    def test_wrong_key(self, client):
        assert client.get("/api/v1/exercises", headers={"X-API-Key": "nope"}).status_code == 403


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

class TestMarkdownEndpoints:

    def test_render(self, client):
        response = client.post("/api/v1/markdown/render", json={"text": "**hi** <b>"}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json() == {"html": "<p><strong>hi</strong> &lt;b&gt;</p>"}

    def test_render_without_images(self, client):
        response = client.post(
            "/api/v1/markdown/render",
            json={"text": "![x](https://example.com/x.png)", "allow_images": False},
            headers=HEADERS,
        )
        assert "<img" not in response.json()["html"]

    def test_recipe_sections(self, client):
        text = "Intro\n## Ingredients\n- egg\n## Steps\n1. boil"
        body = client.post("/api/v1/markdown/recipe-sections", json={"text": text}, headers=HEADERS).json()
        assert body["ingredients_html"] == "<ul><li>egg</li></ul>"
        assert body["steps_html"] == '<ol class="md-steps"><li>boil</li></ol>'
        assert body["rest_html"] == "<p>Intro</p>"
        assert body["image_urls"] == []


# ---------------------------------------------------------------------------
# Trainees, plans and notes
# ---------------------------------------------------------------------------

class TestTrainees:

    def test_register_hides_password(self, client, trainee):
        assert trainee["email"] == "dana@example.com"
        assert "password" not in trainee
        assert "password_hash" not in trainee

    def test_duplicate_email_conflicts(self, client, trainee):
        response = client.post(
            "/api/v1/trainees/register",
            json={"full_name": "Other", "email": "DANA@example.com", "password": "secret2"},
            headers=HEADERS,
        )
        assert response.status_code == 409

    def test_login(self, client, trainee):
        ok = client.post(
            "/api/v1/trainees/login",
            json={"email": "dana@example.com", "password": "secret1"},
            headers=HEADERS,
        )
        assert ok.status_code == 200
        assert ok.json()["id"] == trainee["id"]

        bad = client.post(
            "/api/v1/trainees/login",
            json={"email": "dana@example.com", "password": "wrong"},
            headers=HEADERS,
        )
        assert bad.status_code == 401

    def test_list_and_get(self, client, trainee):
        listed = client.get("/api/v1/trainees", headers=HEADERS).json()
        assert [t["id"] for t in listed] == [trainee["id"]]
        assert client.get(f"/api/v1/trainees/{trainee['id']}", headers=HEADERS).status_code == 200
        assert client.get("/api/v1/trainees/missing", headers=HEADERS).status_code == 404


class TestPlansAndNotes:

    def test_unplanned_day_is_empty(self, client, trainee):
        response = client.get(f"/api/v1/trainees/{trainee['id']}/plans/2025-01-06", headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["program"] == ""
        assert body["program_html"] == ""

    def test_save_plan_renders_markdown(self, client, trainee):
        url = f"/api/v1/trainees/{trainee['id']}/plans/2025-01-06"
        response = client.put(url, json={"program": "1. Squat\n2. Row", "meal": "Oats"}, headers=HEADERS)
        assert response.status_code == 200

        body = client.get(url, headers=HEADERS).json()
        assert body["program_html"] == '<ol class="md-steps"><li>Squat</li><li>Row</li></ol>'
        assert body["meal_html"] == "<p>Oats</p>"
        assert body["coach_note"] == ""

    def test_plan_for_unknown_trainee(self, client):
        response = client.get("/api/v1/trainees/missing/plans/2025-01-06", headers=HEADERS)
        assert response.status_code == 404

    def test_notes_calendar(self, client, trainee):
        base = f"/api/v1/trainees/{trainee['id']}/notes"
        assert client.put(f"{base}/2025-01-06", json={"note": "Legs felt heavy"}, headers=HEADERS).status_code == 204
        assert client.put(f"{base}/2025-01-07", json={"note": "Rest"}, headers=HEADERS).status_code == 204

        body = client.get(base, headers=HEADERS).json()
        assert body["notes"] == {"2025-01-06": "Legs felt heavy", "2025-01-07": "Rest"}


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class TestProgressCalculators:

    def test_summary(self, client):
        response = client.post(
            "/api/v1/progress/summary",
            json={
                "samples": [
                    {"value": 80, "timestamp": "2025-01-08"},
                    {"value": 81, "timestamp": "2025-01-01T00:00:00Z"},
                ],
                "goal": 79,
                "now": "2025-01-08T12:00:00",
            },
            headers=HEADERS,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["start"] == 81
        assert body["latest"] == 80
        assert body["median"] == 80.5
        assert body["trend_per_week"] == pytest.approx(-1.0)
        assert body["goal_progress"] == pytest.approx(50.0)
        assert body["average_7d"] == pytest.approx(80.0)

    def test_empty_summary(self, client):
        body = client.post("/api/v1/progress/summary", json={"samples": []}, headers=HEADERS).json()
        assert body["count"] == 0
        assert body["median"] is None
        assert body["trend_per_week"] == 0.0

    def test_one_rep_max(self, client):
        body = client.post(
            "/api/v1/progress/one-rep-max", json={"weight": 100, "reps": 40}, headers=HEADERS
        ).json()
        assert body["estimated_1rm"] == pytest.approx(200.0)
        assert body["unit"] == "kg"

    def test_convert(self, client):
        body = client.post(
            "/api/v1/progress/convert",
            json={"value": 10, "from_unit": "in", "to_unit": "CM"},
            headers=HEADERS,
        ).json()
        assert body["value"] == pytest.approx(25.4)
        assert body["unit"] == "cm"
        assert body["display"] == 25.4

    def test_convert_across_dimensions_is_rejected(self, client):
        response = client.post(
            "/api/v1/progress/convert",
            json={"value": 10, "from_unit": "kg", "to_unit": "cm"},
            headers=HEADERS,
        )
        assert response.status_code == 422


class TestTraineeProgress:

    def log(self, client, trainee_id, **entry):
        return client.post(f"/api/v1/trainees/{trainee_id}/progress", json=entry, headers=HEADERS)

    def test_log_and_list(self, client, trainee):
        tid = trainee["id"]
        assert self.log(client, tid, kind="weight", recorded_on="2025-01-08", value=80).status_code == 201
        created = self.log(client, tid, kind="weight", recorded_on="2025-01-01", value=180, unit="LB")
        assert created.json()["unit"] == "lb"

        entries = client.get(f"/api/v1/trainees/{tid}/progress?kind=weight", headers=HEADERS).json()
        assert [e["recorded_on"] for e in entries] == ["2025-01-01", "2025-01-08"]
        assert entries[1]["unit"] == "kg"

    def test_bad_unit_is_rejected(self, client, trainee):
        response = self.log(client, trainee["id"], kind="weight", recorded_on="2025-01-01", value=80, unit="stone")
        assert response.status_code == 422

    def test_strength_needs_reps(self, client, trainee):
        response = self.log(client, trainee["id"], kind="strength", recorded_on="2025-01-01", value=100)
        assert response.status_code == 422

    def test_photo_kind_needs_upload(self, client, trainee):
        response = self.log(client, trainee["id"], kind="photo", recorded_on="2025-01-01", value=1)
        assert response.status_code == 422

    def test_unknown_trainee(self, client):
        assert self.log(client, "missing", kind="weight", recorded_on="2025-01-01", value=80).status_code == 404

    def test_weight_summary_in_requested_unit(self, client, trainee):
        tid = trainee["id"]
        self.log(client, tid, kind="weight", recorded_on="2025-01-01", value=100, unit="kg")
        self.log(client, tid, kind="weight", recorded_on="2025-01-08", value=99, unit="kg")

        body = client.get(
            f"/api/v1/trainees/{tid}/progress/summary?unit=lb&goal=200", headers=HEADERS
        ).json()
        assert body["unit"] == "lb"
        assert body["count"] == 2
        assert body["start"] == pytest.approx(220.462, rel=1e-5)
        assert body["trend_per_week"] == pytest.approx(-2.20462, rel=1e-5)

    def test_photo_summary_is_rejected(self, client, trainee):
        response = client.get(
            f"/api/v1/trainees/{trainee['id']}/progress/summary?kind=photo", headers=HEADERS
        )
        assert response.status_code == 422

    def test_strength_summary(self, client, trainee):
        tid = trainee["id"]
        self.log(client, tid, kind="strength", recorded_on="2025-01-01", value=100, reps=5, label="squat")
        self.log(client, tid, kind="strength", recorded_on="2025-01-02", value=90, reps=10, label="squat")
        self.log(client, tid, kind="strength", recorded_on="2025-01-02", value=60, reps=5, label="bench")

        body = client.get(
            f"/api/v1/trainees/{tid}/progress/strength?label=squat", headers=HEADERS
        ).json()
        assert body["set_count"] == 2
        assert body["best_estimated_1rm"] == pytest.approx(120.0)

    def test_photo_upload(self, client, trainee):
        tid = trainee["id"]
        response = client.post(
            f"/api/v1/trainees/{tid}/progress/photos",
            files={"file": ("front.jpg", b"\xff\xd8jpeg", "image/jpeg")},
            data={"recorded_on": "2025-01-01", "note": "week 1"},
            headers=HEADERS,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["kind"] == "photo"
        assert body["photo_url"].startswith(f"mock://storage/progress-photos/progress/{tid}/")

    def test_photo_upload_rejects_wrong_type(self, client, trainee):
        response = client.post(
            f"/api/v1/trainees/{trainee['id']}/progress/photos",
            files={"file": ("clip.mp4", b"data", "video/mp4")},
            data={"recorded_on": "2025-01-01"},
            headers=HEADERS,
        )
        assert response.status_code == 415


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------

class TestExercises:

    def create(self, client, **fields):
        return client.post("/api/v1/exercises", json=fields, headers=HEADERS)

    def test_create_get_and_list(self, client):
        created = self.create(client, title="Goblet Squat", description="Keep **chest** up")
        assert created.status_code == 201
        assert created.json()["slug"] == "goblet-squat"

        body = client.get("/api/v1/exercises/goblet-squat", headers=HEADERS).json()
        assert body["description_html"] == "<p>Keep <strong>chest</strong> up</p>"

        self.create(client, title="Plank")
        titles = [e["title"] for e in client.get("/api/v1/exercises", headers=HEADERS).json()]
        assert titles == ["Plank", "Goblet Squat"]

    def test_duplicate_title(self, client):
        self.create(client, title="Plank")
        assert self.create(client, title="Plank").status_code == 409

    def test_missing_slug(self, client):
        assert client.get("/api/v1/exercises/nope", headers=HEADERS).status_code == 404

    def test_patch(self, client):
        exercise = self.create(client, title="Plank").json()
        response = client.patch(
            f"/api/v1/exercises/{exercise['id']}", json={"equipment": "mat"}, headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["equipment"] == "mat"

        assert client.patch("/api/v1/exercises/missing", json={"equipment": "x"}, headers=HEADERS).status_code == 404
        assert client.patch(f"/api/v1/exercises/{exercise['id']}", json={}, headers=HEADERS).status_code == 422

    def test_video_upload(self, client):
        exercise = self.create(client, title="Plank").json()
        response = client.post(
            f"/api/v1/exercises/{exercise['id']}/video",
            files={"file": ("plank.mp4", b"\x00\x00mp4", "video/mp4")},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["video_url"].startswith(
            f"mock://storage/exercise-videos/exercises/{exercise['id']}/"
        )

    def test_video_upload_limits(self, client):
        exercise = self.create(client, title="Plank").json()
        url = f"/api/v1/exercises/{exercise['id']}/video"

        empty = client.post(url, files={"file": ("a.mp4", b"", "video/mp4")}, headers=HEADERS)
        assert empty.status_code == 400

        too_big = b"0" * (1024 * 1024 + 1)
        large = client.post(url, files={"file": ("a.mp4", too_big, "video/mp4")}, headers=HEADERS)
        assert large.status_code == 413

    def test_oversized_upload_is_logged_with_its_name(self, client, caplog):
        exercise = self.create(client, title="Plank").json()
        url = f"/api/v1/exercises/{exercise['id']}/video"
        too_big = b"0" * (1024 * 1024 + 1)

        with caplog.at_level("WARNING", logger="coachdesk.api.uploads"):
            response = client.post(url, files={"file": ("big.mp4", too_big, "video/mp4")}, headers=HEADERS)

        assert response.status_code == 413
        record = next(r for r in caplog.records if r.getMessage() == "Upload too large")
        assert record.upload_name == "big.mp4"
        assert record.size_bytes == len(too_big)


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------

DESCRIPTION = "Filling.\n## Ingredients\n- oats\n## Method\n1. soak\n![Bowl](https://example.com/bowl.jpg)"


class TestRecipes:

    @pytest.fixture
    def recipe(self, client) -> dict:
        response = client.post(
            "/api/v1/recipes",
            json={"title": "Overnight Oats", "description": DESCRIPTION},
            headers=HEADERS,
        )
        assert response.status_code == 201
        return response.json()

    def upload_album(self, client, recipe_id, *names):
        return client.post(
            f"/api/v1/recipes/{recipe_id}/album",
            files=[("files", (name, b"png-bytes", "image/png")) for name in names],
            headers=HEADERS,
        )

    def test_detail_sections(self, client, recipe):
        body = client.get("/api/v1/recipes/overnight-oats", headers=HEADERS).json()
        assert body["sections"]["ingredients_html"] == "<ul><li>oats</li></ul>"
        assert body["sections"]["steps_html"].startswith('<ol class="md-steps"><li>soak</li></ol>')
        assert body["sections"]["rest_html"] == "<p>Filling.</p>"
        assert body["gallery"] == ["https://example.com/bowl.jpg"]

    def test_gallery_order_album_cover_markdown(self, client, recipe):
        rid = recipe["id"]
        album = self.upload_album(client, rid, "a.png")
        assert album.status_code == 201
        album_url = album.json()[0]["public_url"]

        cover = client.post(
            f"/api/v1/recipes/{rid}/image",
            files={"file": ("cover.png", b"png", "image/png")},
            headers=HEADERS,
        ).json()["image_url"]

        body = client.get("/api/v1/recipes/overnight-oats", headers=HEADERS).json()
        assert body["gallery"] == [album_url, cover, "https://example.com/bowl.jpg"]

    def test_gallery_removes_duplicates(self, client, recipe):
        client.patch(
            f"/api/v1/recipes/{recipe['id']}",
            json={"image_url": "https://example.com/bowl.jpg"},
            headers=HEADERS,
        )
        body = client.get("/api/v1/recipes/overnight-oats", headers=HEADERS).json()
        assert body["gallery"] == ["https://example.com/bowl.jpg"]

    def test_album_list_and_delete(self, client, recipe):
        rid = recipe["id"]
        uploaded = self.upload_album(client, rid, "a.png", "b.png").json()
        assert len(uploaded) == 2

        listed = client.get(f"/api/v1/recipes/{rid}/album", headers=HEADERS).json()
        assert sorted(i["path"] for i in listed) == sorted(i["path"] for i in uploaded)

        response = client.delete(
            f"/api/v1/recipes/{rid}/album", params={"path": uploaded[0]["path"]}, headers=HEADERS
        )
        assert response.status_code == 204
        remaining = client.get(f"/api/v1/recipes/{rid}/album", headers=HEADERS).json()
        assert [i["path"] for i in remaining] == [uploaded[1]["path"]]

    @pytest.mark.parametrize("path", [
        "recipes/someone-else/album/x.png",
        "recipes/{rid}/album/../cover.png",
        "recipes/{rid}/cover.png",
    ])
    def test_album_delete_refuses_foreign_paths(self, client, recipe, path):
        response = client.delete(
            f"/api/v1/recipes/{recipe['id']}/album",
            params={"path": path.format(rid=recipe["id"])},
            headers=HEADERS,
        )
        assert response.status_code == 400

    def test_delete_recipe(self, client, recipe):
        assert client.delete(f"/api/v1/recipes/{recipe['id']}", headers=HEADERS).status_code == 204
        assert client.get("/api/v1/recipes/overnight-oats", headers=HEADERS).status_code == 404
        assert client.delete(f"/api/v1/recipes/{recipe['id']}", headers=HEADERS).status_code == 404

    def test_patch_rejects_bad_slug(self, client, recipe):
        response = client.patch(
            f"/api/v1/recipes/{recipe['id']}", json={"slug": "Not A Slug"}, headers=HEADERS
        )
        assert response.status_code == 422
