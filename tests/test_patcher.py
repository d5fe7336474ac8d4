"""End-to-end tests for patching a client archive."""

import struct
import zipfile
from pathlib import Path

import pytest

from client_patcher.core.errors import InvalidArgument, InvariantViolation, NotFound
from client_patcher.core.events import EventRecorder
from client_patcher.core.patcher import ClientPatcher, patch
from client_patcher.core.settings import PatcherSettings
from client_patcher.core.splicer import read_prefixed_string

OLD_MODULUS = "9c" * 128
NEW_MODULUS = "d3" * 200


def utf8(text: str) -> bytes:
    data = text.encode("utf-8")
    return b"\x01" + struct.pack(">H", len(data)) + data


def class_bytes(*constants: str, raw: bytes = b"") -> bytes:
    body = b"".join(utf8(c) for c in constants)
    return b"\xca\xfe\xba\xbe\x00\x00\x00\x34" + body + raw + b"\x00\x21"


def write_client_jar(path: Path, *, with_endpoint: bool = True) -> Path:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("META-INF/MANIFEST.MF", b"Manifest-Version: 1.0\r\nMain-Class: client\r\n")
        zf.writestr("client.class", class_bytes("client", "run", raw=b"\x11\xaa\x4a\x00"))
        zf.writestr("ab.class", class_bytes("10001", OLD_MODULUS))
        if with_endpoint:
            zf.writestr("net/cl.class", class_bytes("127.0.0.1", "endsWith"))
        zf.writestr("images/logo.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
    return path


def leftovers(directory: Path):
    return sorted(p.name for p in directory.iterdir())


def test_patch_produces_patched_archive(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar")
    recorder = EventRecorder()
    result = ClientPatcher(sink=recorder).patch(
        jar, NEW_MODULUS, "http://example.org/jav_config.ws", None, 12345
    )

    assert result.old_modulus == OLD_MODULUS
    assert result.patched_path == tmp_path / "client-patched.jar"
    assert result.written
    assert result.changed_entries == ["ab.class", "client.class", "net/cl.class"]
    assert result.javconfig_url == "http://example.org/jav_config.ws"
    assert len(result.summary_lines) == 3
    assert leftovers(tmp_path) == ["client-patched.jar", "client.jar"]

    with zipfile.ZipFile(jar) as src, zipfile.ZipFile(result.patched_path) as out:
        assert src.namelist() == out.namelist()
        for name in ("META-INF/MANIFEST.MF", "images/logo.png"):
            assert out.read(name) == src.read(name)

        key = out.read("ab.class")
        start = key.index(NEW_MODULUS.encode())
        assert read_prefixed_string(key, start).decode() == NEW_MODULUS
        assert key.endswith(b"\x00\x21")

        host = out.read("net/cl.class")
        assert b"127.0.0.1" not in host
        assert utf8("") + utf8("endsWith") in host

        client = out.read("client.class")
        assert b"\x30\x39" in client
        assert b"\xaa\x4a" not in client


def test_source_is_directory(tmp_path: Path):
    folder = tmp_path / "client.jar"
    folder.mkdir()
    with pytest.raises(InvalidArgument):
        patch(folder, NEW_MODULUS, None, None, 12345)
    assert leftovers(tmp_path) == ["client.jar"]


def test_source_is_symlink(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar")
    link = tmp_path / "link.jar"
    link.symlink_to(jar)
    with pytest.raises(InvalidArgument):
        patch(link, NEW_MODULUS, None, None, 12345)


@pytest.mark.parametrize(
    "modulus,port",
    [("not-hex", 12345), ("", 12345), (NEW_MODULUS, 70000), (NEW_MODULUS, -1)],
)
def test_invalid_request(tmp_path: Path, modulus, port):
    jar = write_client_jar(tmp_path / "client.jar")
    with pytest.raises(InvalidArgument) as info:
        patch(jar, modulus, None, None, port)
    assert info.value.pass_name == "validate"


def test_missing_endpoint_leaves_nothing_behind(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar", with_endpoint=False)
    with pytest.raises(NotFound) as info:
        patch(jar, NEW_MODULUS, None, None, 12345)
    assert info.value.pass_name == "endpoint"
    assert leftovers(tmp_path) == ["client.jar"]


def test_modulus_layout_mismatch_leaves_nothing_behind(tmp_path: Path):
    jar = tmp_path / "client.jar"
    with zipfile.ZipFile(jar, "w") as zf:
        zf.writestr("client.class", class_bytes("client", raw=b"\xaa\x4a"))
        zf.writestr("ab.class", class_bytes("10001", "xy" + OLD_MODULUS))
        zf.writestr("net/cl.class", class_bytes("127.0.0.1"))

    with pytest.raises(InvariantViolation) as info:
        patch(jar, NEW_MODULUS, None, None, 12345)
    assert info.value.pass_name == "modulus"
    assert leftovers(tmp_path) == ["client.jar"]


def test_dry_run_writes_nothing(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar")
    result = patch(jar, NEW_MODULUS, None, None, 12345, dry_run=True)
    assert result.dry_run
    assert not result.written
    assert result.old_modulus == OLD_MODULUS
    assert leftovers(tmp_path) == ["client.jar"]
    assert result.summary_lines[0].startswith("[DRY-RUN]")


def test_work_dir_setting(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar")
    scratch = tmp_path / "scratch"
    settings = PatcherSettings(work_dir=scratch, output_suffix="-custom")
    result = ClientPatcher(settings).patch(jar, NEW_MODULUS, None, None, 43595)
    assert result.patched_path.name == "client-custom.jar"
    assert scratch.is_dir()
    assert list(scratch.iterdir()) == []


def test_inspect_reports_targets(tmp_path: Path):
    jar = write_client_jar(tmp_path / "client.jar")
    found = ClientPatcher().inspect(jar)
    assert found["modulus"].entry == "ab.class"
    assert found["modulus"].old_value == OLD_MODULUS
    assert found["endpoint"].entry == "net/cl.class"
    assert found["port"].entry == "client.class"
    assert leftovers(tmp_path) == ["client.jar"]
