from unittest.mock import patch

import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile

from complaints.uploads import UploadError, upload_attachment
from conftest import make_response


@pytest.fixture
def evidence():
    return SimpleUploadedFile("evidence.png", b"\x89PNG\r\n", content_type="image/png")


class TestUploadAttachment:
    def test_returns_secure_url(self, evidence):
        payload = {"secure_url": "https://res.test/campus/evidence.png"}
        with patch("complaints.uploads.requests.post", return_value=make_response(payload=payload)) as post:
            url = upload_attachment(evidence)
        assert url == "https://res.test/campus/evidence.png"
        assert post.call_args.args[0] == "https://upload.test/v1_1/campus/auto/upload"
        assert post.call_args.kwargs["data"] == {"upload_preset": "unsigned"}
        name, _, content_type = post.call_args.kwargs["files"]["file"]
        assert (name, content_type) == ("evidence.png", "image/png")

    def test_not_configured(self, settings, evidence):
        settings.CLOUDINARY_UPLOAD_PRESET = ""
        with patch("complaints.uploads.requests.post") as post:
            with pytest.raises(UploadError):
                upload_attachment(evidence)
        post.assert_not_called()

    def test_http_error(self, evidence):
        resp = make_response(status_code=400, text="Upload preset not found")
        resp.raise_for_status.side_effect = requests.HTTPError("400", response=resp)
        with patch("complaints.uploads.requests.post", return_value=resp):
            with pytest.raises(UploadError):
                upload_attachment(evidence)

    def test_response_without_url(self, evidence):
        with patch("complaints.uploads.requests.post", return_value=make_response(payload={"public_id": "x"})):
            with pytest.raises(UploadError):
                upload_attachment(evidence)
