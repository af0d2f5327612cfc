import asyncio

import httpx
import respx
from httpx import AsyncClient, Response

WP_HTML = (
    '<html><head><link rel="stylesheet" href="/wp-content/themes/x/style.css"></head>'
    "<body><p>Reach us: hello@{domain}</p></body></html>"
)


def _mock_site(domain: str, html: str):
    pattern = domain.replace(".", r"\.")
    respx.get(f"https://{domain}").mock(return_value=Response(200, html=html))
    respx.get(url__regex=rf"^https://{pattern}/.+").mock(return_value=Response(404))


async def submit_and_wait(client: AsyncClient, json=None, timeout: float = 5.0):
    """POST /scrape → 202, then poll GET /jobs/{job_id} until terminal state."""
    resp = await client.post("/scrape", json=json)
    assert resp.status_code == 202

    data = resp.json()
    job_id = data["job_id"]
    assert data["status"] == "pending"

    deadline = asyncio.get_event_loop().time() + timeout
    while asyncio.get_event_loop().time() < deadline:
        await asyncio.sleep(0.05)
        status_resp = await client.get(f"/jobs/{job_id}")
        assert status_resp.status_code == 200
        job = status_resp.json()
        if job["status"] in ("completed", "failed"):
            return job

    raise TimeoutError(f"Job {job_id} did not complete within {timeout}s")


@respx.mock
async def test_detect(client):
    respx.get("https://wp.com").mock(return_value=Response(200, html=WP_HTML.format(domain="wp.com")))

    resp = await client.post("/detect", json={"url": "wp.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_platform"] is True
    assert data["indicator"] == "/wp-content/"
    assert data["confidence"] == "high"


@respx.mock
async def test_detect_unreachable_returns_502(client):
    respx.get("https://down.net").mock(side_effect=httpx.ConnectError("refused"))

    resp = await client.post("/detect", json={"url": "down.net"})
    assert resp.status_code == 502
    assert resp.json()["detail"].startswith("Fetch error")


async def test_validate(client):
    resp = await client.post("/validate", json={"urls": ["a.com", "bad url"]})
    assert resp.status_code == 200
    assert resp.json() == {"valid": ["a.com"], "invalid": ["bad url"]}


@respx.mock
async def test_scrape_job_full_flow(client):
    _mock_site("wp.com", WP_HTML.format(domain="wp.com"))
    respx.get("https://down.net").mock(side_effect=httpx.ConnectError("refused"))

    job = await submit_and_wait(client, json={"urls": ["wp.com", "down.net"]})

    assert job["status"] == "completed"
    assert job["task_type"] == "scrape"
    result = job["result"]
    assert result["kind"] == "scrape"
    assert [r["url"] for r in result["results"]] == ["wp.com", "down.net"]
    assert result["results"][0]["emails"] == ["hello@wp.com"]
    assert result["results"][1]["error"]
    assert result["summary"]["platform_sites"] == 1
    assert result["summary"]["errors"] == 1
    assert result["exports"] == {}


@respx.mock
async def test_scrape_job_with_export(client, tmp_path):
    _mock_site("wp.com", WP_HTML.format(domain="wp.com"))

    job = await submit_and_wait(client, json={"urls": ["wp.com"], "export": True, "output_prefix": "api"})

    exports = job["result"]["exports"]
    assert set(exports) == {"json", "csv", "email_list", "report"}
    assert exports["json"].endswith("api.json")


async def test_scrape_job_invalid_urls_fails(client):
    job = await submit_and_wait(client, json={"urls": ["bad url"]})
    assert job["status"] == "failed"
    assert job["error"] == "No valid URLs provided"


async def test_scrape_empty_urls_rejected(client):
    resp = await client.post("/scrape", json={"urls": []})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "No URLs provided"


@respx.mock
async def test_scrape_sync_only_platform(client):
    _mock_site("wp.com", WP_HTML.format(domain="wp.com"))
    _mock_site("static.io", "<html><body>plain</body></html>")

    resp = await client.post("/scrape/sync", json={"urls": ["wp.com", "static.io"], "only_platform": True})
    assert resp.status_code == 200
    assert [r["url"] for r in resp.json()["results"]] == ["wp.com"]


async def test_scrape_sync_no_valid_urls(client):
    resp = await client.post("/scrape/sync", json={"urls": ["bad url"]})
    assert resp.status_code == 422
