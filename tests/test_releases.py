from app.salestrack.services.releases import compare_versions, parse_version

from tests.helpers import PROVISIONING_HEADERS, auth_headers, owner_session


def _publish(client, version, platforms=None, **legacy):
    payload = {"version": version, "release_notes": f"Release {version}"}
    if platforms is not None:
        payload["platforms"] = platforms
    payload.update(legacy)
    return client.post("/salestrack/releases/publish", headers=PROVISIONING_HEADERS, json=payload)


def test_parse_and_compare_versions():
    assert parse_version("v1.10.2") == [1, 10, 2]
    assert parse_version("2.0.0-beta") == [2, 0, 0]
    assert compare_versions("1.10.0", "1.9.9") == 1
    assert compare_versions("1.2", "v1.2.0") == 0
    assert compare_versions("1.2.0", "1.2.1") == -1


def test_publish_requires_provisioning_key(client):
    response = client.post(
        "/salestrack/releases/publish",
        json={"version": "1.0.0", "release_notes": "First", "platform": "win32", "download_url": "https://example.com/a"},
    )
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_PROVISIONING_KEY"


def test_publish_multiple_platforms(client):
    response = _publish(
        client,
        "1.4.0",
        platforms=[
            {"platform": "win32", "download_url": "https://example.com/app-1.4.0.exe", "file_size": 1024},
            {"platform": "darwin", "architecture": "arm64", "download_url": "https://example.com/app-1.4.0.dmg"},
        ],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Release 1.4.0 published successfully"
    releases = {item["platform"]: item for item in body["releases"]}
    assert releases["win32"]["architecture"] == "x64"
    assert releases["darwin"]["architecture"] == "arm64"
    assert all(item["is_latest"] and item["status"] == "published" for item in body["releases"])


def test_publish_legacy_single_platform_payload(client):
    response = client.post(
        "/salestrack/releases/publish",
        headers=PROVISIONING_HEADERS,
        json={
            "version": "1.0.1",
            "release_notes": "Hotfix",
            "platform": "win32",
            "downloadUrl": "https://example.com/app-1.0.1.exe",
            "isCritical": True,
        },
    )
    assert response.status_code == 201
    release = response.json()["releases"][0]
    assert release["download_url"] == "https://example.com/app-1.0.1.exe"
    assert release["is_critical"] is True


def test_publish_validation(client):
    duplicate_first = _publish(client, "2.0.0", platform="win32", download_url="https://example.com/a")
    assert duplicate_first.status_code == 201
    duplicate = _publish(client, "2.0.0", platform="win32", download_url="https://example.com/b")
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "RELEASE_VERSION_EXISTS"

    no_platform = _publish(client, "2.1.0")
    assert no_platform.status_code == 422


def test_check_updates(client):
    _publish(client, "1.0.0", platform="win32", download_url="https://example.com/1.0.0")
    _publish(client, "1.2.0", platform="win32", download_url="https://example.com/1.2.0")
    _publish(client, "1.3.0", platform="win32", download_url="https://example.com/1.3.0", is_draft=True)

    outdated = client.post(
        "/salestrack/releases/check-updates", json={"platform": "win32", "currentVersion": "1.0.0"}
    ).json()
    assert outdated["has_update"] is True
    assert outdated["latest_version"]["version"] == "1.2.0"
    assert outdated["current_version"] == "1.0.0"

    current = client.post(
        "/salestrack/releases/check-updates", json={"platform": "win32", "current_version": "1.2.0"}
    ).json()
    assert current["has_update"] is False
    assert current["latest_version"] is None

    unversioned = client.post("/salestrack/releases/check-updates", json={"platform": "win32"}).json()
    assert unversioned["has_update"] is True
    assert unversioned["current_version"] == "unknown"

    unknown_platform = client.post(
        "/salestrack/releases/check-updates", json={"platform": "linux", "current_version": "1.0.0"}
    ).json()
    assert unknown_platform == {
        "success": True,
        "has_update": False,
        "current_version": "1.0.0",
        "latest_version": None,
        "trace_id": unknown_platform["trace_id"],
    }


def test_list_releases_requires_authentication(client):
    _publish(client, "1.0.0", platform="win32", download_url="https://example.com/1.0.0")
    _publish(client, "1.1.0", platform="win32", download_url="https://example.com/1.1.0", is_draft=True)

    assert client.get("/salestrack/releases").status_code == 401

    _, token = owner_session(client)
    everything = client.get("/salestrack/releases", headers=auth_headers(token)).json()
    assert len(everything["releases"]) == 2
    drafts = client.get("/salestrack/releases?status=draft", headers=auth_headers(token)).json()
    assert [item["version"] for item in drafts["releases"]] == ["1.1.0"]
