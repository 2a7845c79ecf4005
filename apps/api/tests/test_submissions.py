"""Tests for public submissions and submission review endpoints."""

import json
import os

import pytest
from httpx import AsyncClient

from app.core.config import Settings
from app.core.deps import get_media_store, get_settings
from app.db.models import Form, Submission
from app.main import app
from app.services.media_store import MediaStoreError


def _responses(**values):
    return json.dumps([{"fieldName": name, "value": value} for name, value in values.items()])


def _resume(name="cv.pdf", data=b"%PDF-1.4 resume", content_type="application/pdf"):
    return ("files", (name, data, content_type))


async def _submit(client, form, responses, files=None, file_fields=None):
    data = {"responses": responses}
    if file_fields is not None:
        data["fileFields"] = file_fields
    return await client.post(
        f"/submissions/submit/{form.public_id}", data=data, files=files or []
    )


class FailingMediaStore:
    def upload(self, data, *, folder, key, filename=None, content_type=None):
        raise MediaStoreError("bucket unavailable")

    def delete(self, reference):
        raise MediaStoreError("bucket unavailable")


# =============================================================================
# Public submit
# =============================================================================

@pytest.mark.asyncio
async def test_submit_stores_submission_and_file(client: AsyncClient, db, sample_form, media_store):
    response = await _submit(
        client,
        sample_form,
        _responses(full_name="Ada", age="30", skills=["python", "sql"], resume=["cv.pdf"]),
        files=[_resume()],
        file_fields=["resume"],
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Form submitted successfully"

    submission = db.query(Submission).one()
    assert str(submission.id) == body["submission_id"]
    assert submission.status == "pending"
    assert submission.total_files == 1
    assert submission.total_file_size == len(b"%PDF-1.4 resume")
    assert submission.submitter_info["ip"]
    assert [r["fieldName"] for r in submission.responses] == ["full_name", "age", "skills", "resume"]
    assert submission.responses[1]["value"] == 30

    resume = submission.responses[3]
    assert resume["fieldType"] == "file"
    assert resume["value"] == resume["fileUrls"]
    reference = resume["fileUrls"][0]
    assert reference.startswith(f"http://test/media/ai-forms/{sample_form.id}/resume/")
    storage_key = media_store.storage_key_for(reference)
    assert storage_key.endswith(".pdf")
    assert os.path.exists(os.path.join(media_store.root_path, storage_key))

    db.refresh(sample_form)
    assert sample_form.submission_count == 1
    assert sample_form.last_submission_at is not None


@pytest.mark.asyncio
async def test_submit_accepts_file_fields_as_json_array(client: AsyncClient, db, sample_form):
    response = await _submit(
        client,
        sample_form,
        _responses(full_name="Ada", resume=["notes.txt"]),
        files=[_resume("notes.txt", b"plain text", "text/plain")],
        file_fields=json.dumps(["resume"]),
    )
    assert response.status_code == 201, response.text
    assert db.query(Submission).one().total_files == 1


@pytest.mark.asyncio
async def test_submit_missing_required_field(client: AsyncClient, db, sample_form):
    response = await _submit(
        client, sample_form, _responses(age=40, resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Field 'Full Name' is required"
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_submit_missing_required_file(client: AsyncClient, db, sample_form):
    response = await _submit(client, sample_form, _responses(full_name="Ada", resume=["cv.pdf"]))
    assert response.status_code == 400
    assert response.json()["detail"] == "File upload required for 'Resume'"


@pytest.mark.asyncio
async def test_submit_unknown_field(client: AsyncClient, db, sample_form):
    response = await _submit(
        client, sample_form, _responses(full_name="Ada", resume=["cv.pdf"], nickname="A"),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown field: nickname"
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_submit_validation_rule(client: AsyncClient, sample_form):
    response = await _submit(
        client, sample_form, _responses(full_name="A" * 11, resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "'Full Name' must be no more than 10 characters"

    response = await _submit(
        client, sample_form, _responses(full_name="Ada", age=4, resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "'Age' must be at least 5"

    response = await _submit(
        client, sample_form, _responses(full_name="Ada", age="NaN", resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "'Age' must be a finite number"


@pytest.mark.asyncio
async def test_submit_rejects_invalid_responses_payload(client: AsyncClient, sample_form):
    response = await _submit(client, sample_form, "not json")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid responses format"

    response = await _submit(client, sample_form, json.dumps({"fieldName": "full_name"}))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_submit_unknown_or_private_form(client: AsyncClient, db, sample_form):
    response = await client.post(
        "/submissions/submit/nope", data={"responses": _responses(full_name="Ada")}
    )
    assert response.status_code == 404

    sample_form.is_public = False
    db.commit()
    response = await _submit(client, sample_form, _responses(full_name="Ada"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_submit_upload_failure_persists_nothing(client: AsyncClient, db, sample_form):
    app.dependency_overrides[get_media_store] = lambda: FailingMediaStore()
    response = await _submit(
        client, sample_form, _responses(full_name="Ada", resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to upload file: cv.pdf"
    assert db.query(Submission).count() == 0
    db.refresh(sample_form)
    assert sample_form.submission_count == 0


@pytest.mark.asyncio
async def test_submit_rejects_disallowed_file_type(client: AsyncClient, db, sample_form):
    response = await _submit(
        client, sample_form, _responses(full_name="Ada", resume=["run.exe"]),
        files=[_resume("run.exe", b"MZ", "application/octet-stream")], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Only image, PDF, and document files are allowed"
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_submit_rejects_oversized_file(client: AsyncClient, db, sample_form):
    app.dependency_overrides[get_settings] = lambda: Settings(MAX_UPLOAD_FILE_SIZE_BYTES=4)
    response = await _submit(
        client, sample_form, _responses(full_name="Ada", resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 413
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_submit_file_config_accept_rule(client: AsyncClient, sample_form):
    # allowed by the upload filter but not by the field's accept list
    response = await _submit(
        client, sample_form, _responses(full_name="Ada", resume=["photo.png"]),
        files=[_resume("photo.png", b"\x89PNG", "image/png")], file_fields=["resume"],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "File type not allowed for 'Resume': photo.png"


# =============================================================================
# Creator review
# =============================================================================

async def _create_submission(client, form, name="Ada"):
    response = await _submit(
        client, form, _responses(full_name=name, resume=["cv.pdf"]),
        files=[_resume()], file_fields=["resume"],
    )
    assert response.status_code == 201, response.text
    return response.json()["submission_id"]


@pytest.mark.asyncio
async def test_list_and_filter_submissions(authed_client: AsyncClient, db, sample_form):
    first = await _create_submission(authed_client, sample_form, "Ada")
    await _create_submission(authed_client, sample_form, "Bob")

    response = await authed_client.put(
        f"/submissions/{first}/status", json={"status": "approved", "notes": "good fit"}
    )
    assert response.status_code == 200
    updated = response.json()["submission"]
    assert updated["status"] == "approved"
    assert updated["notes"] == "good fit"

    response = await authed_client.get(f"/submissions/form/{sample_form.id}")
    data = response.json()
    assert data["total"] == 2
    assert data["total_pages"] == 1

    response = await authed_client.get(
        f"/submissions/form/{sample_form.id}", params={"status": "approved"}
    )
    data = response.json()
    assert data["total"] == 1
    assert data["submissions"][0]["id"] == first
    assert data["submissions"][0]["response_count"] == 2


@pytest.mark.asyncio
async def test_get_submission(authed_client: AsyncClient, sample_form):
    submission_id = await _create_submission(authed_client, sample_form)
    response = await authed_client.get(f"/submissions/{submission_id}")
    assert response.status_code == 200
    submission = response.json()["submission"]
    assert submission["responses"][0]["fieldName"] == "full_name"
    assert submission["responses"][1]["fileUrls"]
    assert submission["total_files"] == 1


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_status(authed_client: AsyncClient, sample_form):
    submission_id = await _create_submission(authed_client, sample_form)
    response = await authed_client.put(
        f"/submissions/{submission_id}/status", json={"status": "archived"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_review_endpoints_check_owner(
    authed_client: AsyncClient, db, make_form, other_user
):
    foreign = make_form(other_user, "Foreign")
    submission = Submission(form_id=foreign.id, responses=[], submitter_info={})
    db.add(submission)
    db.commit()

    assert (await authed_client.get(f"/submissions/form/{foreign.id}")).status_code == 403
    assert (await authed_client.get(f"/submissions/{submission.id}")).status_code == 403
    assert (await authed_client.delete(f"/submissions/{submission.id}")).status_code == 403
    assert (
        await authed_client.get("/submissions/00000000-0000-0000-0000-000000000000")
    ).status_code == 404


@pytest.mark.asyncio
async def test_delete_submission_removes_files(authed_client: AsyncClient, db, sample_form, media_store):
    submission_id = await _create_submission(authed_client, sample_form)
    submission = db.query(Submission).one()
    reference = submission.file_urls()[0]
    path = os.path.join(media_store.root_path, media_store.storage_key_for(reference))
    assert os.path.exists(path)

    response = await authed_client.delete(f"/submissions/{submission_id}")
    assert response.status_code == 200
    assert response.json()["message"] == "Submission deleted successfully"
    assert not os.path.exists(path)
    assert db.query(Submission).count() == 0
    assert db.query(Form).count() == 1


@pytest.mark.asyncio
async def test_delete_submission_tolerates_media_errors(authed_client: AsyncClient, db, sample_form):
    submission_id = await _create_submission(authed_client, sample_form)
    app.dependency_overrides[get_media_store] = lambda: FailingMediaStore()

    response = await authed_client.delete(f"/submissions/{submission_id}")
    assert response.status_code == 200
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_review_requires_auth(client: AsyncClient, sample_form):
    response = await client.get(f"/submissions/form/{sample_form.id}")
    assert response.status_code == 401
