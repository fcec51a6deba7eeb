# tests/core/test_resource_resolver.py
import asyncio

from sri_injector.model import FailureReason
from sri_injector.services.resource_resolver_service import ResourceResolverService


def _resolve(resolver, reference):
    return asyncio.run(resolver.resolve(reference))


def test_local_reference_reads_from_output_root(output_dir, fake_http):
    resolver = ResourceResolverService(output_dir, fake_http)
    resource = _resolve(resolver, "main.js")

    assert resource.ok
    assert resource.content == b"console.log(1);"
    assert fake_http.calls == []


def test_leading_slash_means_output_root(output_dir, fake_http):
    resource = _resolve(ResourceResolverService(output_dir, fake_http), "/assets/style.css?v=2")
    assert resource.content == b"body{margin:0}"


def test_missing_local_file_is_absence(output_dir, fake_http):
    resource = _resolve(ResourceResolverService(output_dir, fake_http), "missing.js")

    assert not resource.ok
    assert resource.reason == FailureReason.LOCAL_READ
    assert "missing.js" in resource.error


def test_directory_reference_is_absence(output_dir, fake_http):
    resource = _resolve(ResourceResolverService(output_dir, fake_http), "assets")
    assert resource.reason == FailureReason.LOCAL_READ


def test_reference_outside_output_root_is_absence(tmp_path, output_dir, fake_http):
    (tmp_path / "secret.js").write_text("nope")
    resource = _resolve(ResourceResolverService(output_dir, fake_http), "../secret.js")

    assert resource.content is None
    assert resource.reason == FailureReason.LOCAL_READ


def test_external_reference_is_fetched_once(output_dir, make_fake_http):
    http = make_fake_http({"https://cdn.example.com/lib.js": (200, b"lib()")})
    resource = _resolve(ResourceResolverService(output_dir, http), "https://cdn.example.com/lib.js")

    assert resource.content == b"lib()"
    assert resource.location == "https://cdn.example.com/lib.js"
    assert http.calls == ["https://cdn.example.com/lib.js"]


def test_protocol_relative_reference_uses_https(output_dir, make_fake_http):
    http = make_fake_http({"https://cdn.example.com/lib.js": (200, b"lib()")})
    resource = _resolve(ResourceResolverService(output_dir, http), "//cdn.example.com/lib.js")
    assert resource.ok


def test_non_success_status_is_absence_without_retry(output_dir, make_fake_http):
    http = make_fake_http({"https://example.com/x.css": (404, None)})
    resource = _resolve(ResourceResolverService(output_dir, http), "https://example.com/x.css")

    assert not resource.ok
    assert resource.reason == FailureReason.EXTERNAL_FETCH
    assert "HTTP 404" in resource.error
    assert http.calls == ["https://example.com/x.css"]


def test_repeated_reference_is_resolved_each_time(output_dir, make_fake_http):
    http = make_fake_http({"https://cdn.example.com/lib.js": (200, b"lib()")})
    resolver = ResourceResolverService(output_dir, http)

    async def twice():
        return await asyncio.gather(
            resolver.resolve("https://cdn.example.com/lib.js"),
            resolver.resolve("https://cdn.example.com/lib.js"),
        )

    asyncio.run(twice())
    assert len(http.calls) == 2
