"""
Pytest unit tests for mensurlab.app and the command line interface.
"""

import pytest

from mensurlab.app import App
from mensurlab.constants import AcousticConstants, Radiation, Damping
from mensurlab.__main__ import main

PIPE_MEN = """straight pipe
15,15,500,pipe
15,0,0
"""


@pytest.fixture
def bore_file(tmp_path):
    path = tmp_path / "pipe.men"
    path.write_text(PIPE_MEN)
    return path


class TestApp:
    """Tests for the App configuration."""

    def test_defaults(self):
        config = App(argv=[]).get_config()
        assert config["temperature"] == 24.0
        assert config["rad_calc"] == "PIPE"
        assert config["dump_calc"] == "WALL"
        assert config["sec_var_calc"] is False

    def test_command_line_overrides(self):
        config = App(argv=["-temperature", "10", "-rad_calc", "NONE", "-dump_calc", "NONE"]).get_config()
        const = AcousticConstants.from_config(config)
        assert const.temperature == 10.0
        assert const.radiation == Radiation.NONE
        assert const.damping == Damping.NONE

    def test_unknown_arguments_are_ignored(self):
        config = App(argv=["pipe.men", "--transfer"]).get_config()
        assert config["max_freq"] == 2000.0


class TestMain:
    """Tests for the mensurlab command."""

    def test_writes_imp(self, bore_file, tmp_path):
        out = tmp_path / "result.imp"
        rc = main([str(bore_file), "-o", str(out), "-max_freq", "200", "-step_freq", "10"])
        assert rc == 0
        lines = out.read_text().splitlines()
        assert lines[0] == "freq,imp.real,imp.imag,mag"
        assert len(lines) == 22

    def test_default_output_next_to_bore(self, bore_file):
        rc = main([str(bore_file), "-max_freq", "100", "-num_freq", "4"])
        assert rc == 0
        assert bore_file.with_suffix(".imp").exists()

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nothing.men")]) == 1

    def test_print_men(self, bore_file, capsys):
        assert main([str(bore_file), "--print_men"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "straight pipe"
        assert out[1].startswith("15.000000,15.000000,500.000000")

    def test_plot(self, bore_file, tmp_path):
        import matplotlib
        matplotlib.use("Agg")
        png = tmp_path / "pipe.png"
        rc = main([str(bore_file), "-o", str(tmp_path / "pipe.imp"), "-max_freq", "300", "-step_freq", "5", "--plot", str(png)])
        assert rc == 0
        assert png.exists()
