import pytest
from pinelint.router import route_request


@pytest.mark.asyncio
async def test_route_lint_action():
    request = {
        "request_id": "test-1",
        "action": "lint",
        "payload": {"source": 'indicator("Demo")\n', "path": "demo.pine"}
    }
    response = await route_request(request)

    assert response["request_id"] == "test-1"
    assert response["type"] == "success"
    report = response["data"]
    assert report["path"] == "demo.pine"
    assert report["passed"] is True
    assert report["warning_count"] == 1
    assert report["diagnostics"][0]["category"] == "HardcodedString"


@pytest.mark.asyncio
async def test_route_lint_with_config():
    request = {
        "request_id": "test-2",
        "action": "lint",
        "payload": {
            "source": 'indicator("Demo")\n',
            "config": {"disabled_rules": ["HardcodedString"]},
        }
    }
    response = await route_request(request)

    assert response["type"] == "success"
    assert response["data"]["diagnostics"] == []


@pytest.mark.asyncio
async def test_route_rules_action():
    response = await route_request({"request_id": "test-3", "action": "rules", "payload": {}})

    assert response["type"] == "success"
    ids = [r["id"] for r in response["data"]["rules"]]
    assert "threshold-isolation" in ids
    assert response["data"]["rules"][0]["categories"] == ["BadIndentation", "OperatorPlacement"]


@pytest.mark.asyncio
async def test_route_unknown_action():
    request = {
        "request_id": "test-4",
        "action": "unknown_action",
        "payload": {}
    }
    response = await route_request(request)

    assert response["request_id"] == "test-4"
    assert response["type"] == "error"
    assert response["error"]["code"] == "UNKNOWN_ACTION"


@pytest.mark.asyncio
async def test_route_invalid_lint_payload():
    # source missing
    response = await route_request({"request_id": "test-5", "action": "lint", "payload": {}})

    assert response["type"] == "error"
    assert response["error"]["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_route_invalid_config():
    request = {
        "request_id": "test-6",
        "action": "lint",
        "payload": {"source": "x = 1\n", "config": {"continuation_indent": -1}},
    }
    response = await route_request(request)

    assert response["error"]["code"] == "INVALID_PAYLOAD"


@pytest.mark.asyncio
async def test_route_invalid_envelope():
    request = {
        "request_id": "test-7",
        # action missing
        "payload": {}
    }
    response = await route_request(request)

    assert response["request_id"] == "test-7"
    assert response["type"] == "error"
    assert response["error"]["code"] == "INTERNAL_ERROR"
