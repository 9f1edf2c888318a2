"""HTTP surface of the relay, with PayPal faked at the transport layer."""

import logging

import httpx
from fastapi.testclient import TestClient

from vaultrelay.common.config import RelaySettings
from vaultrelay.services.relay.main import create_app


ORDER_PATH = "/v2/checkout/orders"
AUTO_CAPTURED_ORDER = {
    "id": "O-VAULT",
    "status": "COMPLETED",
    "purchase_units": [{"payments": {"captures": [{"id": "CAP1", "status": "COMPLETED"}]}}],
}


def test_health_reports_configuration(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "OK",
        "mode": "sandbox",
        "clientIdConfigured": True,
        "clientSecretConfigured": True,
    }


def test_config_exposes_client_id(client):
    assert client.get("/api/config").json() == {"clientId": "client-id-1234567890-abcdef", "mode": "sandbox"}


def test_config_without_client_id_is_500_not_crash(paypal, tmp_path):
    settings = RelaySettings(_env_file=None, paypal_client_id="", static_dir=str(tmp_path / "none"))
    with TestClient(create_app(settings, transport=paypal.transport())) as c:
        health = c.get("/health")
        config = c.get("/api/config")

    assert health.json()["clientIdConfigured"] is False
    assert config.status_code == 500
    assert "error" in config.json()


def test_client_token_for_returning_payer(client, paypal):
    response = client.get("/api/generate-client-token", params={"customer_id": "C1"})

    assert response.status_code == 200
    assert response.json() == {"id_token": "id-token-xyz"}
    assert paypal.form(paypal.calls[0])["target_customer_id"] == "C1"


def test_client_token_for_new_payer(client, paypal):
    response = client.get("/api/generate-client-token")

    assert response.status_code == 200
    assert "target_customer_id" not in paypal.form(paypal.calls[0])


def test_payment_token_without_setup_token_is_400_without_upstream_call(client, paypal):
    response = client.post("/api/payment-tokens", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "setupTokenId is required"}
    assert paypal.calls == []


def test_list_payment_tokens_is_read_only(client, paypal):
    paypal.respond("GET", "/v3/vault/payment-tokens", 200, {"customer": {"id": "C1"}, "payment_tokens": [{"id": "PT1"}]})

    first = client.get("/api/payment-tokens/C1")
    second = client.get("/api/payment-tokens/C1")

    assert first.json() == second.json()
    vault_calls = paypal.calls_to("/v3/vault/payment-tokens")
    assert [c.method for c in vault_calls] == ["GET", "GET"]
    assert all(c.url.params["customer_id"] == "C1" for c in vault_calls)


def test_scenario_new_payer_direct_purchase(client, paypal):
    paypal.respond("POST", ORDER_PATH, 200, {"id": "O1", "status": "PAYER_ACTION_REQUIRED"})

    response = client.post("/api/orders", json={})

    assert response.status_code == 200
    assert response.json()["id"] == "O1"
    (call,) = paypal.calls_to(ORDER_PATH)
    assert call.headers["paypal-request-id"].startswith("ORDER-")
    body = paypal.json(call)
    paypal_source = body["payment_source"]["paypal"]
    assert paypal_source["attributes"]["vault"]["store_in_vault"] == "ON_SUCCESS"
    assert "customer_id" not in paypal_source["attributes"]["vault"]
    assert paypal_source["experience_context"]["return_url"] == "http://testserver/success"


def test_order_without_body_is_direct_purchase(client, paypal):
    paypal.respond("POST", ORDER_PATH, 200, {"id": "O1", "status": "PAYER_ACTION_REQUIRED"})

    response = client.post("/api/orders")

    assert response.status_code == 200
    assert "paypal" in paypal.json(paypal.calls_to(ORDER_PATH)[0])["payment_source"]


def test_scenario_returning_payer_via_vault(client, paypal):
    paypal.respond("POST", "/v3/vault/setup-tokens", 200, {"id": "S1", "status": "PAYER_ACTION_REQUIRED", "customer": {"id": "C1"}})
    paypal.respond("POST", "/v3/vault/payment-tokens", 200, {"id": "PT1", "customer": {"id": "C1"}})
    paypal.respond("POST", ORDER_PATH, 200, AUTO_CAPTURED_ORDER)

    setup = client.post("/api/setup-tokens", json={"customerId": "C1"})
    payment_token = client.post("/api/payment-tokens", json={"setupTokenId": "S1"})
    order = client.post("/api/orders", json={"vaultId": "PT1"})

    assert setup.json()["customer"]["id"] == "C1"
    assert paypal.json(paypal.calls_to("/v3/vault/setup-tokens")[0])["customer"] == {"id": "C1"}
    assert paypal.json(paypal.calls_to("/v3/vault/payment-tokens")[0]) == {
        "payment_source": {"token": {"id": "S1", "type": "SETUP_TOKEN"}}
    }
    assert payment_token.json()["customer"]["id"] == "C1"
    assert order.json()["status"] == "COMPLETED"
    order_body = paypal.json(paypal.calls_to(ORDER_PATH)[0])
    assert order_body["payment_source"] == {"token": {"id": "PT1", "type": "PAYMENT_METHOD_TOKEN"}}
    assert not [c for c in paypal.calls if c.url.path.endswith("/capture")]


def test_capture_order(client, paypal):
    paypal.respond(
        "POST",
        f"{ORDER_PATH}/O1/capture",
        201,
        {"id": "O1", "status": "COMPLETED", "payment_source": {"paypal": {"attributes": {"vault": {"status": "VAULTED"}}}}},
    )

    response = client.post("/api/orders/O1/capture")

    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"
    (call,) = paypal.calls_to(f"{ORDER_PATH}/O1/capture")
    assert call.headers["paypal-request-id"].startswith("CAPTURE-")
    assert call.headers["authorization"] == "Bearer A21-access"


def test_capture_rejected_by_paypal_surfaces_details(client, paypal):
    paypal.respond("POST", f"{ORDER_PATH}/O1/capture", 422, {"name": "UNPROCESSABLE_ENTITY", "details": [{"issue": "ORDER_NOT_APPROVED"}]})

    response = client.post("/api/orders/O1/capture")

    assert response.status_code == 500
    assert response.json()["details"]["details"][0]["issue"] == "ORDER_NOT_APPROVED"


def test_scenario_upstream_auth_failure(client, paypal):
    paypal.respond("POST", "/v1/oauth2/token", 401, {"error": "invalid_client", "error_description": "Client Authentication failed"})

    responses = [
        client.get("/api/generate-client-token"),
        client.post("/api/setup-tokens", json={}),
        client.post("/api/payment-tokens", json={"setupTokenId": "S1"}),
        client.get("/api/payment-tokens/C1"),
        client.post("/api/orders", json={}),
        client.post("/api/orders/O1/capture"),
    ]

    for response in responses:
        assert response.status_code == 500
        assert response.json()["details"]["error"] == "invalid_client"
    assert {c.url.path for c in paypal.calls} == {"/v1/oauth2/token"}


def test_metrics_endpoint(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_static_checkout_page_served_behind_api_routes(paypal, tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<html>checkout</html>")
    settings = RelaySettings(_env_file=None, paypal_client_id="id", paypal_client_secret="s", static_dir=str(public))

    with TestClient(create_app(settings, transport=paypal.transport())) as c:
        page = c.get("/")
        health = c.get("/health")

    assert "checkout" in page.text
    assert health.json()["status"] == "OK"


def test_tracing_instruments_app(paypal, tmp_path, monkeypatch):
    instrumented = []
    monkeypatch.setattr("vaultrelay.services.relay.main.instrument_app", instrumented.append)
    settings = RelaySettings(_env_file=None, tracing_enabled=True, static_dir=str(tmp_path / "none"))

    app = create_app(settings, transport=paypal.transport())

    assert instrumented == [app]


def test_wrong_typed_body_field_is_400_envelope(client, paypal):
    response = client.post("/api/payment-tokens", json={"setupTokenId": 123})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "invalid request body"
    assert body["details"][0]["loc"][-1] == "setupTokenId"
    assert paypal.calls == []


def test_malformed_json_body_is_400_envelope(client, paypal):
    response = client.post("/api/orders", content="{not json", headers={"content-type": "application/json"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "invalid request body"
    assert body["details"][0]["type"] == "json_invalid"
    assert paypal.calls == []


def test_non_json_success_from_paypal_is_500_envelope(client, paypal):
    paypal.respond_raw("POST", ORDER_PATH, 200, "<html>gateway</html>", "text/html")

    response = client.post("/api/orders", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Order creation failed", "details": "<html>gateway</html>"}


def test_unexpected_error_is_500_envelope(settings):
    def broken(request):
        raise RuntimeError("boom")

    app = create_app(settings, transport=httpx.MockTransport(broken))
    with TestClient(app, raise_server_exceptions=False) as c:
        response = c.post("/api/orders", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "internal server error"}


def test_vaulted_order_without_capture_is_flagged(client, paypal, caplog):
    paypal.respond("POST", ORDER_PATH, 200, {"id": "O2", "status": "CREATED"})

    with caplog.at_level(logging.WARNING, logger="vaultrelay"):
        response = client.post("/api/orders", json={"vaultId": "PT1"})

    assert response.status_code == 200
    assert "unexpected order phase" in caplog.text
    assert "expected=AUTO_CAPTURED" in caplog.text


def test_direct_order_pending_capture_is_not_flagged(client, paypal, caplog):
    paypal.respond("POST", ORDER_PATH, 200, {"id": "O1", "status": "PAYER_ACTION_REQUIRED"})

    with caplog.at_level(logging.WARNING, logger="vaultrelay"):
        client.post("/api/orders", json={})

    assert "unexpected order phase" not in caplog.text


def test_incomplete_capture_is_flagged(client, paypal, caplog):
    paypal.respond("POST", f"{ORDER_PATH}/O1/capture", 201, {"id": "O1", "status": "PENDING"})

    with caplog.at_level(logging.WARNING, logger="vaultrelay"):
        response = client.post("/api/orders/O1/capture")

    assert response.status_code == 200
    assert "capture did not complete" in caplog.text
    assert "PENDING_CAPTURE -> PENDING_CAPTURE" in caplog.text
