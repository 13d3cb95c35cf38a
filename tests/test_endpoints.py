"""
API Endpoint Tests

Tests for all FastAPI endpoints using TestClient, with vendor clients
overridden to talk to httpx.MockTransport stubs (see conftest.gateway).
Run with: pytest tests/test_endpoints.py -v
"""
import base64
import json
import pytest
import sys
from pathlib import Path
from io import BytesIO

sys.path.insert(0, str(Path(__file__).parent.parent))

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


class TestServiceEndpoints:
    """Test /api/health, /api and /metrics."""

    def test_health_check(self, gateway):
        """Health endpoint should return 200 without contacting vendors."""
        response = gateway().get("/api/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert "authEnabled" in data
        assert "docrBaseUrl" in data

    def test_api_info(self, gateway):
        response = gateway().get("/api")
        assert response.status_code == 200
        assert response.json()["health"] == "/api/health"

    def test_metrics(self, gateway):
        client = gateway()
        client.get("/api/health")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "gateway_requests_total" in response.text

    def test_request_id_echoed(self, gateway):
        response = gateway().get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestDocumentProcess:
    """Test /api/documents/process and /api/documents/fraud-detection."""

    def test_json_request(self, gateway, vendor_stub, docr_response):
        docr = vendor_stub((200, docr_response))
        response = gateway(docr=docr).post("/api/documents/process", json={
            "images": [{"base64": "data:image/jpeg;base64,QUJD", "format": "jpg"}],
            "scenario": "FullProcess",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["fullName"] == "DOE JANE"
        assert data["overallStatus"] == "valid"
        assert data["validity"]["valid"] == ["AuthenticityCheck (Type 1, Element 2, Diagnose 1)"]
        assert data["documentPosition"]["verdict"]["isCorrectFraming"] is True

        sent = docr.json_bodies()[0]
        assert sent["processParam"]["scenario"] == "FullProcess"
        assert sent["List"] == [{"ImageData": {"image": "QUJD"}}]

    def test_multipart_request(self, gateway, vendor_stub, docr_response):
        """Every uploaded file becomes a page, in upload order."""
        docr = vendor_stub((200, docr_response))
        response = gateway(docr=docr).post(
            "/api/documents/process",
            files=[
                ("front", ("front.jpg", BytesIO(JPEG_BYTES), "image/jpeg")),
                ("back", ("back.png", BytesIO(b"back-bytes"), "image/png")),
            ],
            data={"scenario": "Mrz"},
        )

        assert response.status_code == 200
        sent = docr.json_bodies()[0]
        assert [item["ImageData"]["image"] for item in sent["List"]] == [
            base64.b64encode(JPEG_BYTES).decode(),
            base64.b64encode(b"back-bytes").decode(),
        ]
        assert sent["processParam"]["scenario"] == "Mrz"

    def test_missing_images(self, gateway, vendor_stub):
        """No pages → 400 without calling the vendor."""
        docr = vendor_stub()
        response = gateway(docr=docr).post("/api/documents/process", json={"images": []})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"
        assert "Provide document images" in response.json()["error"]
        assert docr.requests == []

    def test_malformed_json(self, gateway):
        response = gateway().post(
            "/api/documents/process", content=b"{oops", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    def test_vendor_error_relayed(self, gateway, vendor_stub):
        """Vendor non-2xx is relayed with the same status and raw body."""
        docr = vendor_stub((503, "DocR is down"))
        response = gateway(docr=docr).post("/api/documents/process", json={"images": [{"base64": "QUJD"}]})

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "Document reader process request failed."
        assert data["details"] == "DocR is down"

    def test_unparseable_vendor_body(self, gateway, vendor_stub):
        docr = vendor_stub((200, "<html>ok</html>"))
        response = gateway(docr=docr).post("/api/documents/process", json={"images": [{"base64": "QUJD"}]})

        assert response.status_code == 200
        assert response.json()["overallStatus"] == "unknown"

    def test_fraud_detection_forces_auth(self, gateway, vendor_stub, docr_response):
        docr = vendor_stub((200, docr_response))
        response = gateway(docr=docr).post("/api/documents/fraud-detection", json={"images": [{"base64": "QUJD"}]})

        assert response.status_code == 200
        assert docr.json_bodies()[0]["processParam"]["authParams"] == {"checkLiveness": False}


class TestDocumentFraud:
    """Test /api/document-fraud/detect."""

    def test_fraud_summary(self, gateway, vendor_stub, docr_response):
        docr = vendor_stub((200, docr_response))
        response = gateway(docr=docr).post("/api/document-fraud/detect", json={"images": [{"base64": "QUJD"}]})

        assert response.status_code == 200
        data = response.json()
        assert data["transactionId"] == "tx-123"
        assert len(data["checks"]) == 17
        assert data["checks"][0]["evidencePaths"] == []
        assert "Document Type Identification" in data["notApplicable"]

    def test_missing_images(self, gateway):
        response = gateway().post("/api/document-fraud/detect", json={})
        assert response.status_code == 400


class TestVerifyIdentity:
    """Test /api/documents/verify-identity."""

    def test_similarity_percent(self, gateway, vendor_stub, docr_response, face_match_response, portrait_b64):
        docr = vendor_stub((200, docr_response))
        face = vendor_stub((200, face_match_response))
        response = gateway(docr=docr, face=face).post("/api/documents/verify-identity", json={
            "images": [{"base64": "QUJD"}],
            "livePortraitBase64": "data:image/jpeg;base64,TElWRQ==",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["similarityPercent"] == 93.0
        assert data["documentPortraitBase64"] == portrait_b64

        assert "authParams" not in docr.json_bodies()[0]["processParam"]
        match_images = face.json_bodies()[0]["images"]
        assert [image["data"] for image in match_images] == [portrait_b64, "TElWRQ=="]

    def test_live_portrait_form_field(self, gateway, vendor_stub, docr_response, face_match_response):
        docr = vendor_stub((200, docr_response))
        face = vendor_stub((200, face_match_response))
        response = gateway(docr=docr, face=face).post(
            "/api/documents/verify-identity",
            files=[("images", ("doc.jpg", BytesIO(JPEG_BYTES), "image/jpeg"))],
            data={"livePortrait": "TElWRQ=="},
        )

        assert response.status_code == 200
        assert face.json_bodies()[0]["images"][1]["data"] == "TElWRQ=="

    def test_missing_live_portrait(self, gateway):
        response = gateway().post("/api/documents/verify-identity", json={"images": [{"base64": "QUJD"}]})
        assert response.status_code == 400
        assert "live portrait" in response.json()["error"]

    def test_missing_portrait(self, gateway, vendor_stub):
        """No portrait in the document reader answer → 422, face API not called."""
        docr = vendor_stub((200, {"ContainerList": {"List": []}}))
        face = vendor_stub()
        response = gateway(docr=docr, face=face).post("/api/documents/verify-identity", json={
            "images": [{"base64": "QUJD"}],
            "livePortraitBase64": "TElWRQ==",
        })

        assert response.status_code == 422
        assert response.json()["code"] == "EXTRACTION_FAILED"
        assert face.requests == []


class TestCompareDocuments:
    """Test /api/documents/compare-documents and its compare-passports alias."""

    @pytest.mark.parametrize("path", ["/api/documents/compare-documents", "/api/documents/compare-passports"])
    def test_comparison(self, gateway, vendor_stub, docr_response, path):
        docr = vendor_stub((200, docr_response))
        face = vendor_stub((200, {"results": [{"similarity": 91.2}]}))
        response = gateway(docr=docr, face=face).post(path, json={
            "firstDocumentImageBase64": "QUJD",
            "secondDocumentImageBase64": "REVG",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["faceMatchScore"] == 0.912
        assert data["faceMatchScorePercent"] == 91.2
        assert data["isFaceMatch"] is True
        assert data["isNameMatch"] is True
        assert data["isDocumentNumberMatch"] is True
        assert data["isDobMatch"] is True
        assert data["firstDocument"]["documentNumber"] == "X1234567"
        assert json.loads(data["firstDocument"]["rawResponseJson"])["TransactionInfo"]["TransactionID"] == "tx-123"

        assert [body["List"][0]["ImageData"]["image"] for body in docr.json_bodies()] == ["QUJD", "REVG"]

    def test_empty_body(self, gateway):
        response = gateway().post("/api/documents/compare-documents", json={})
        assert response.status_code == 400
        assert "firstDocumentImageBase64" in response.json()["error"]

    def test_one_image_missing(self, gateway):
        response = gateway().post("/api/documents/compare-documents", json={"firstDocumentImageBase64": "QUJD"})
        assert response.status_code == 400
        assert response.json()["error"] == "Both document images are required."

    def test_second_document_unparseable(self, gateway, vendor_stub, docr_response):
        docr = vendor_stub((200, docr_response), (200, "not json"))
        response = gateway(docr=docr).post("/api/documents/compare-documents", json={
            "firstDocumentImageBase64": "QUJD",
            "secondDocumentImageBase64": "REVG",
        })
        assert response.status_code == 422


class TestFaceEndpoints:
    """Test the face API endpoints."""

    def test_detect_face_json(self, gateway, vendor_stub, face_detect_response):
        face = vendor_stub((200, face_detect_response))
        response = gateway(face=face).post("/api/detect-face", json={"imageBase64": "data:image/png;base64,QUFB"})

        assert response.status_code == 200
        assert response.json()["details"]["Sex"] == "female"
        assert face.json_bodies()[0]["image"] == "QUFB"

    def test_detect_face_multipart(self, gateway, vendor_stub):
        face = vendor_stub((200, {}))
        response = gateway(face=face).post(
            "/api/detect-face", files={"image": ("face.jpg", BytesIO(JPEG_BYTES), "image/jpeg")}
        )

        assert response.status_code == 200
        assert face.json_bodies()[0]["image"] == base64.b64encode(JPEG_BYTES).decode()

    def test_detect_face_missing_image(self, gateway):
        response = gateway().post("/api/detect-face", json={})
        assert response.status_code == 400
        assert response.json()["error"].startswith("No image provided.")

    def test_icao_detect(self, gateway, vendor_stub, icao_response):
        face = vendor_stub((200, icao_response))
        response = gateway(face=face).post("/api/icao-detect", json={"imageBase64": "QUFB"})

        assert response.status_code == 200
        assert response.json()["compliancePercent"] == 70.0

    def test_face_match_json(self, gateway, vendor_stub, face_match_response):
        face = vendor_stub((200, face_match_response))
        response = gateway(face=face).post("/api/face-match", json={"imageBase64_1": "QUFB", "imageBase64_2": "QkJC"})

        assert response.status_code == 200
        assert response.json()["similarity"] == 0.93

    def test_face_match_multipart_fallback(self, gateway, vendor_stub, face_match_response):
        """Unnamed files fill image1 and image2 in upload order."""
        face = vendor_stub((200, face_match_response))
        response = gateway(face=face).post("/api/face-match", files=[
            ("a", ("a.jpg", BytesIO(b"first"), "image/jpeg")),
            ("b", ("b.jpg", BytesIO(b"second"), "image/jpeg")),
        ])

        assert response.status_code == 200
        sent = [image["data"] for image in face.json_bodies()[0]["images"]]
        assert sent == [base64.b64encode(b"first").decode(), base64.b64encode(b"second").decode()]

    def test_face_match_missing_image(self, gateway):
        response = gateway().post("/api/face-match", json={"imageBase64_1": "QUFB"})
        assert response.status_code == 400

    def test_liveness_by_transaction(self, gateway, vendor_stub, liveness_response):
        face = vendor_stub((200, liveness_response))
        response = gateway(face=face).post("/api/liveness-detection", json={"transactionId": "live-42"})

        assert response.status_code == 200
        assert response.json()["livenessStatus"] == "passed"
        assert face.requests[0].method == "GET"

    def test_liveness_frames(self, gateway, vendor_stub, liveness_response):
        face = vendor_stub((200, liveness_response))
        response = gateway(face=face).post("/api/liveness-detection", json={"frames": ["QUFB"]})

        assert response.status_code == 200
        assert face.requests[0].method == "POST"

    def test_liveness_missing_input(self, gateway):
        response = gateway().post("/api/liveness-detection", json={"frames": []})
        assert response.status_code == 400

    def test_face_vendor_error(self, gateway, vendor_stub):
        face = vendor_stub((401, '{"message": "bad key"}'))
        response = gateway(face=face).post("/api/face-match", json={"imageBase64_1": "QUFB", "imageBase64_2": "QkJC"})

        assert response.status_code == 401
        assert response.json()["details"] == '{"message": "bad key"}'


class TestImageValidation:
    """Base64 that does not decode is rejected before any vendor call."""

    def test_invalid_document_page(self, gateway, vendor_stub):
        docr = vendor_stub()
        response = gateway(docr=docr).post(
            "/api/documents/process", json={"images": [{"base64": "not base64 at all!!"}]}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "INVALID_REQUEST"
        assert data["details"] == {"field": "images"}
        assert docr.requests == []

    def test_embedded_whitespace_dropped(self, gateway, vendor_stub, docr_response):
        """Line-wrapped base64 is accepted and forwarded without the breaks."""
        docr = vendor_stub((200, docr_response))
        response = gateway(docr=docr).post(
            "/api/documents/process", json={"images": [{"base64": "QUJD\nREVG"}]}
        )

        assert response.status_code == 200
        assert docr.json_bodies()[0]["List"] == [{"ImageData": {"image": "QUJDREVG"}}]

    @pytest.mark.parametrize("path, body, field", [
        ("/api/documents/verify-identity",
         {"images": [{"base64": "QUJD"}], "livePortraitBase64": "data:image/jpeg;base64,%%%"},
         "livePortraitBase64"),
        ("/api/documents/compare-documents",
         {"firstDocumentImageBase64": "QUJD", "secondDocumentImageBase64": "QUJ"},
         "secondDocumentImageBase64"),
        ("/api/detect-face", {"imageBase64": "no-pe"}, "imageBase64"),
        ("/api/icao-detect", {"imageBase64": "???"}, "imageBase64"),
        ("/api/face-match", {"imageBase64_1": "QUFB", "imageBase64_2": "QkJ*"}, "imageBase64_2"),
        ("/api/liveness-detection", {"frames": ["QUFB", "frame#2"]}, "frames"),
    ])
    def test_invalid_image_fields(self, gateway, vendor_stub, path, body, field):
        docr = vendor_stub()
        face = vendor_stub()
        response = gateway(docr=docr, face=face).post(path, json=body)

        assert response.status_code == 400
        assert response.json()["details"] == {"field": field}
        assert docr.requests == []
        assert face.requests == []

    def test_invalid_live_portrait_form_field(self, gateway):
        response = gateway().post(
            "/api/documents/verify-identity",
            files=[("images", ("doc.jpg", BytesIO(JPEG_BYTES), "image/jpeg"))],
            data={"livePortrait": "not-an-image!"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "livePortrait"}
