from zipfile import ZipFile

import pytest
from pbo_builder import build_pbo

from pboax.convert.cli import main
from pboax.convert.pbo import MANIFEST, PboManifest, Renamer, pbo_list, pbo_to_zip

ENTRIES = [
    ("config.cpp", b"class CfgPatches {};"),
    ("scripts\\init.sqf", b"hint 'hello';"),
    ("scripts\\init.sqf", b"hint 'again';"),
]


def test_renamer():
    renamer = Renamer()
    assert renamer("scripts\\init.sqf") == "scripts/init.sqf"
    assert renamer("scripts\\init.sqf") == "scripts/init_1.sqf"
    assert renamer("scripts/init.sqf") == "scripts/init_2.sqf"
    assert renamer("readme") == "readme"
    assert renamer("readme") == "readme_1"


def test_pbo_to_zip(write_pbo, tmp_path):
    input_pbo = write_pbo(build_pbo({"prefix": "x\\y"}, ENTRIES))
    output_zip = tmp_path / "out.zip"

    manifest = pbo_to_zip(input_pbo, output_zip)

    with ZipFile(output_zip, "r") as z:
        assert sorted(z.namelist()) == sorted(
            ["config.cpp", "scripts/init.sqf", "scripts/init_1.sqf", MANIFEST]
        )
        assert z.read("scripts/init.sqf") == b"hint 'hello';"
        assert z.read("scripts/init_1.sqf") == b"hint 'again';"
        stored = PboManifest.model_validate_json(z.read(MANIFEST))

    assert stored == manifest
    assert stored.properties == {"prefix": "x\\y"}
    assert stored.version.mime == "Vers"
    assert [entry.name for entry in stored.entries] == [name for name, _ in ENTRIES]
    assert [entry.offset for entry in stored.entries] == [0, 20, 33]
    assert stored.entries[1].timestamp == 1234
    assert len(bytes.fromhex(stored.checksum)) == 20


def test_pbo_list(write_pbo, sample_pbo):
    lines = pbo_list(write_pbo(sample_pbo))
    assert lines == [
        "prefix=a\\b",
        "",
        "         4 Blank x.txt",
        "         0 Blank empty.bin",
        "         4 total, 2 entries",
    ]


def test_cli_list(write_pbo, sample_pbo, capsys):
    assert main(["list", str(write_pbo(sample_pbo))]) == 0
    assert "x.txt" in capsys.readouterr().out


def test_cli_extract(write_pbo, sample_pbo, tmp_path):
    output_zip = tmp_path / "sample.zip"
    assert main(["extract", str(write_pbo(sample_pbo)), str(output_zip)]) == 0
    with ZipFile(output_zip, "r") as z:
        assert z.read("x.txt") == bytes([1, 2, 3, 4])


def test_cli_reports_errors(write_pbo, sample_pbo, capsys):
    path = write_pbo(sample_pbo[:-1])
    assert main(["list", str(path)]) == 1
    err = capsys.readouterr().err
    assert "checksum size" in err


def test_cli_missing_input(tmp_path, capsys):
    missing = tmp_path / "missing.pbo"
    with pytest.raises(SystemExit) as exc_info:
        main(["list", str(missing)])
    assert exc_info.value.code == 2
    assert "missing.pbo" in capsys.readouterr().err


def test_cli_input_is_directory(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["extract", str(tmp_path)])
    assert exc_info.value.code == 2
    assert "not a file" in capsys.readouterr().err


def test_cli_missing_output_directory(write_pbo, sample_pbo, tmp_path, capsys):
    output_zip = tmp_path / "nowhere" / "sample.zip"
    with pytest.raises(SystemExit) as exc_info:
        main(["extract", str(write_pbo(sample_pbo)), str(output_zip)])
    assert exc_info.value.code == 2
    assert "directory does not exist" in capsys.readouterr().err


def test_cli_extract_into_directory(write_pbo, sample_pbo, tmp_path):
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    assert main(["extract", str(write_pbo(sample_pbo)), str(output_dir)]) == 0
    with ZipFile(output_dir / "sample.zip", "r") as z:
        assert z.read("x.txt") == bytes([1, 2, 3, 4])
