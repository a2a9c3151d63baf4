import io

import voxscene
from voxbuild import matl, minimal_file
from voxscene import voxtext


def test_print_vox_file():
    vox = voxscene.parse(minimal_file(matl(2, {"_type": "_metal", "_rough": "0.5"})))
    out = io.StringIO()
    voxtext.print_vox_file(vox, out)
    lines = out.getvalue().splitlines()

    assert lines[0] == "scene:"
    assert lines[1] == "    TransformNode r=0x04 t=(0, 0, 0) layer=-1"
    assert lines[2].startswith("      ShapeNode models=")
    assert any(line.startswith("    0: Model(30, 20, 10) with ") for line in lines)
    assert "  2: metal #010101ff weight=100 roughness=50" in lines
    assert (
        sum(1 for line in lines if line.endswith("diffuse #000000ff weight=100")) == 1
    )


def test_main(tmp_path, capsys):
    path = tmp_path / "scene.vox"
    path.write_bytes(minimal_file())
    assert voxtext.main([str(path)]) == 0
    assert capsys.readouterr().out.startswith("scene:\n")


def test_main_bad_file(tmp_path, capsys):
    path = tmp_path / "bad.vox"
    path.write_bytes(b"not a vox file")
    assert voxtext.main([str(path)]) == 1
    assert "Error parsing file" in capsys.readouterr().err
