import httpx
import pytest

from resume_tailor.config import Settings
from resume_tailor.exceptions import StorageUploadError
from resume_tailor.services import supabase_upload


@pytest.fixture
def supabase_settings(monkeypatch):
    settings = Settings(supabase_url="https://project.supabase.co/", supabase_service_role_key="service-key")
    monkeypatch.setattr(supabase_upload, "get_settings", lambda: settings)
    return settings


@pytest.fixture
def requests(monkeypatch):
    """Route every storage call through a mock transport and record it."""
    seen = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "/object/sign/" in request.url.path:
            return httpx.Response(200, json={"signedURL": "/object/sign/resumes/u/a.pdf?token=t"})
        return httpx.Response(200, json={})

    def client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(supabase_upload.httpx, "AsyncClient", client)
    return seen


def test_credentials_come_from_settings(supabase_settings, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://ignored.example.com")

    assert supabase_upload._credentials() == ("https://project.supabase.co", "service-key")


def test_missing_configuration(monkeypatch):
    monkeypatch.setattr(supabase_upload, "get_settings", lambda: Settings(supabase_url="", supabase_service_role_key=""))

    with pytest.raises(StorageUploadError):
        supabase_upload._credentials()


@pytest.mark.asyncio
async def test_signed_url_uses_configured_project(supabase_settings, requests):
    url = await supabase_upload.create_signed_url("resumes/u/a.pdf", expires_in=60)

    assert url == "https://project.supabase.co/storage/v1/object/sign/resumes/u/a.pdf?token=t"
    assert requests[0].headers["apikey"] == "service-key"


@pytest.mark.asyncio
async def test_upload_returns_storage_path(supabase_settings, requests):
    path = await supabase_upload.upload_bytes_to_supabase(b"%PDF", "resumes", "u/a.pdf", "application/pdf")

    assert path == "resumes/u/a.pdf"
    assert requests[0].headers["content-length"] == "4"


def test_safe_storage_name():
    assert supabase_upload.safe_storage_name("My (final) résumé #2.pdf") == "My_final_résumé_2.pdf"
