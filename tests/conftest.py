"""
Pytest Configuration and Fixtures

Shared fixtures for all tests in the verification gateway test suite.
Vendor traffic is stubbed with httpx.MockTransport; no vendor is contacted.
Run with: pytest -v
"""
import copy
import json
import pytest
import sys
from pathlib import Path

import httpx

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# 400 characters of base64 alphabet: long enough to count as an embedded image
PORTRAIT_B64 = "QUJD" * 100
LOGO_B64 = "TE9HTw==" * 500

SAMPLE_DOCR_RESPONSE = {
    "TransactionInfo": {"TransactionID": "tx-123"},
    "ContainerList": {
        "Count": 5,
        "List": [
            {
                "DocVisualExtendedInfo": {
                    "pArrayFields": [
                        {"FieldName": "Surname", "Buf_Text": " DOE "},
                        {"FieldName": "Given Names", "Buf_Text": "JANE"},
                        {"FieldName": "Document Number", "Buf_Text": "X1234567"},
                        {"FieldName": "Date of Birth", "Buf_Text": "1990-05-15"},
                        {"FieldName": "Date of Expiry", "Buf_Text": "2030-01-01"},
                        {"FieldName": "Document Class Code", "Buf_Text": "P"},
                        {"FieldName": "Sex", "Buf_Text": "F"},
                    ]
                }
            },
            {
                "AuthenticityCheckList": {
                    "List": [
                        {"List": [{"Type": 1, "ElementType": 2, "ElementDiagnose": 1, "ElementResult": 1}]}
                    ]
                }
            },
            {"Images": {"fieldList": [{"fieldName": "Portrait", "portraitImage": PORTRAIT_B64}]}},
            {
                "DocumentPosition": {
                    "ResultStatus": 1,
                    "ObjArea": 82.5,
                    "PerspectiveTr": 1,
                    "Angle": 0.4,
                    "Inverse": 0,
                    "docFormat": 3,
                    "Center": {"x": 640, "y": 360},
                    "Width": 1100,
                    "Height": 700,
                    "LeftTop": {"x": 90, "y": 10},
                    "RightTop": {"x": 1190, "y": 10},
                    "RightBottom": {"x": 1190, "y": 710},
                    "LeftBottom": {"x": 90, "y": 710},
                }
            },
            {"Status": {"overallStatus": 1, "captureProcessIntegrity": 1, "detailsOptical": {"security": 1}}},
        ],
    },
}

SAMPLE_FACE_MATCH_RESPONSE = {
    "code": 0,
    "results": [{"firstIndex": 0, "secondIndex": 1, "similarity": 0.93, "score": 0.91}],
}

SAMPLE_FACE_DETECT_RESPONSE = {
    "code": 0,
    "results": {
        "detections": [
            {
                "roi": [10, 20, 100, 120],
                "attributes": {
                    "details": [
                        {"name": "Age", "value": {"low": 25, "high": 32}},
                        {"name": "Sex", "value": "female"},
                        {"name": "Smile", "value": False},
                    ]
                },
            }
        ]
    },
}

SAMPLE_ICAO_RESPONSE = {
    "code": 0,
    "results": {
        "detections": [
            {
                "quality": {
                    "detailsGroups": [
                        {"groupId": 1, "totalCount": 4, "compliantCount": 4},
                        {"groupId": 2, "totalCount": 6, "compliantCount": 3},
                    ]
                }
            }
        ]
    },
}

SAMPLE_LIVENESS_RESPONSE = {
    "code": 0,
    "transactionId": "live-42",
    "metadata": {"status": "passed", "score": 0.97},
}


@pytest.fixture
def docr_response():
    """A successful document reader answer (deep copy, safe to mutate)."""
    return copy.deepcopy(SAMPLE_DOCR_RESPONSE)


@pytest.fixture
def face_detect_response():
    return copy.deepcopy(SAMPLE_FACE_DETECT_RESPONSE)


@pytest.fixture
def face_match_response():
    return copy.deepcopy(SAMPLE_FACE_MATCH_RESPONSE)


@pytest.fixture
def icao_response():
    return copy.deepcopy(SAMPLE_ICAO_RESPONSE)


@pytest.fixture
def liveness_response():
    return copy.deepcopy(SAMPLE_LIVENESS_RESPONSE)


@pytest.fixture
def portrait_b64():
    return PORTRAIT_B64


@pytest.fixture
def logo_b64():
    return LOGO_B64


class VendorStub:
    """
    Records vendor requests and answers them from a queue.

    Each queued answer is (status_code, body); bodies that are not strings
    are sent as JSON. The last answer repeats once the queue runs dry.
    """

    def __init__(self, *answers):
        self.answers = list(answers) or [(200, {})]
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code, body = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    def json_bodies(self):
        return [json.loads(request.content) if request.content else None for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def vendor_stub():
    """Factory for VendorStub instances."""
    return VendorStub


@pytest.fixture
def gateway(vendor_stub):
    """
    Build a TestClient whose vendor clients talk to the given stubs.

    Usage:
        client = gateway(docr=VendorStub((200, body)), face=VendorStub(...))
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.vendor_clients import (
        DocumentReaderClient,
        FaceClient,
        get_document_reader_client,
        get_face_client,
    )

    def _build(docr=None, face=None):
        docr = docr or vendor_stub()
        face = face or vendor_stub()
        app.dependency_overrides[get_document_reader_client] = lambda: DocumentReaderClient(
            base_url="http://docr.test", timeout_seconds=5, transport=docr.transport
        )
        app.dependency_overrides[get_face_client] = lambda: FaceClient(
            base_url="http://face.test", timeout_seconds=5, transport=face.transport
        )
        return TestClient(app)

    yield _build

    app.dependency_overrides.clear()
