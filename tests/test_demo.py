import sketchsolver.demo as demo


def test_demo_prints_each_drag_step(capsys):
    demo.main(["--log-level", "ERROR"])

    out = capsys.readouterr().out
    assert out.startswith("Initial solve")
    assert out.count("Drag A ->") == len(demo.DRAG_PATH)
    assert "nan" not in out
