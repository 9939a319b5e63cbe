import gzip
import tarfile
import zipfile

import pytest

from sublyne_installer.errors import DownloadError
from sublyne_installer.lib.archive import extract, find_file, single_top_dir
from sublyne_installer.lib.download import download, download_argvs


def _write_to_output(payload: bytes):
    def effect(argv):
        flag = "-O" if argv[0] == "wget" else "-o"
        with open(argv[argv.index(flag) + 1], "wb") as f:
            f.write(payload)

    return effect


def test_wget_is_tried_first(fake_run, tmp_path):
    fake_run.respond("wget", effect=_write_to_output(b"data"))
    dest = tmp_path / "f.bin"
    download("https://example.invalid/f.bin", str(dest))
    assert dest.read_bytes() == b"data"
    assert fake_run.ran("curl") == []


def test_falls_back_to_curl_when_wget_fails(fake_run, tmp_path):
    fake_run.respond("wget", returncode=8)
    fake_run.respond("curl", effect=_write_to_output(b"via curl"))
    dest = tmp_path / "f.bin"
    download("https://example.invalid/f.bin", str(dest))
    assert dest.read_bytes() == b"via curl"
    assert len(fake_run.ran("wget")) == 1


def test_fails_only_when_every_tool_fails(fake_run, tmp_path):
    fake_run.respond("wget", returncode=8)
    fake_run.respond("curl", returncode=22)
    with pytest.raises(DownloadError) as exc:
        download("https://example.invalid/f.bin", str(tmp_path / "f.bin"))
    assert "wget: exit 8" in str(exc.value)
    assert "curl: exit 22" in str(exc.value)


def test_timeout_wraps_each_attempt(monkeypatch):
    monkeypatch.setattr("sublyne_installer.lib.download.have", lambda cmd: True)
    argvs = download_argvs("https://x/y", "/tmp/y", timeout=60)
    assert [a[:3] for a in argvs] == [["timeout", "60", "wget"], ["timeout", "60", "curl"]]


def test_extract_tarball_and_find_binary(tmp_path):
    src = tmp_path / "gost-linux-amd64-2.11.5"
    src.mkdir()
    (src / "gost").write_bytes(b"\x7fELF")
    (src / "README.md").write_text("readme")
    archive = tmp_path / "gost.tar.gz"
    with tarfile.open(archive, "w:gz") as tf:
        tf.add(src, arcname=src.name)

    out = extract(str(archive), str(tmp_path / "x"))
    found = find_file(str(out), "gost")
    assert found is not None and found.read_bytes() == b"\x7fELF"


def test_extract_single_file_gz(tmp_path):
    archive = tmp_path / "gost-linux-amd64-2.11.5.gz"
    with gzip.open(archive, "wb") as f:
        f.write(b"binary")
    out = extract(str(archive), str(tmp_path / "x"))
    assert (out / "gost-linux-amd64-2.11.5").read_bytes() == b"binary"


def test_zip_with_single_top_dir_is_unwrapped(tmp_path):
    archive = tmp_path / "main.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("Sublyne-main/backend/main.py", "print('hi')\n")
        zf.writestr("Sublyne-main/requirements.txt", "fastapi\n")
    out = extract(str(archive), str(tmp_path / "x"))
    root = single_top_dir(str(out))
    assert root.name == "Sublyne-main"
    assert (root / "backend" / "main.py").is_file()


def test_zip_members_cannot_escape(tmp_path):
    archive = tmp_path / "evil.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../../etc/passwd", "root::0:0")
    with pytest.raises(ValueError):
        extract(str(archive), str(tmp_path / "x"))


def test_unknown_archive_type(tmp_path):
    p = tmp_path / "thing.rar"
    p.write_bytes(b"")
    with pytest.raises(ValueError):
        extract(str(p), str(tmp_path / "x"))


@pytest.mark.parametrize("name", ["app.zip", "gost.tar.gz", "gost.gz"])
def test_corrupt_archive_is_a_value_error(tmp_path, name):
    p = tmp_path / name
    p.write_bytes(b"<html>404 Not Found</html>")
    with pytest.raises(ValueError, match="Corrupt archive"):
        extract(str(p), str(tmp_path / "x"))
