from urllib.parse import urlparse


async def test_upload_url_is_signed_for_video_key(client):
    response = await client.get("/api/upload-url", params={"fileName": "intro.mp4", "fileType": "video/mp4"})
    assert response.status_code == 200
    body = response.json()

    assert body["key"].startswith("videos/")
    assert body["key"].endswith("-intro.mp4")
    assert body["publicUrl"] == f"https://test-bucket.s3.us-east-1.amazonaws.com/{body['key']}"
    assert body["key"] in urlparse(body["uploadUrl"]).path


async def test_upload_url_needs_name_and_type(client):
    response = await client.get("/api/upload-url", params={"fileName": "intro.mp4"})
    assert response.status_code == 400


async def test_health(client):
    assert (await client.get("/health")).json()["status"] == "UP"
