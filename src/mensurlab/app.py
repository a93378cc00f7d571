"""
Application shell and configuration for mensurlab.

Provides a singleton App with logging and the configuration (from ./*.conf
files and the command line) used by the CLI and by AcousticConstants.from_config.
"""

import logging
import sys
import configargparse

from .constants import Radiation, Damping

app = None


def init_app(log_to_file=False, argv=None):
    """Create and set the global App. Call once at startup."""
    global app
    app = App(log_to_file=log_to_file, argv=argv)
    return app


def get_app():
    """Return the global App; initializes with default settings if not yet created."""
    if app is None:
        init_app()
    return app


def get_config():
    """Return the configuration dict from the global App."""
    return get_app().get_config()


def add_options(p):
    """Register the mensurlab options on a configargparse parser."""
    p.add('-log_level', type=str, choices=["info", "error", "debug", "warn"], default="info", help='log level')
    p.add('-log_file', type=str, default="./log.txt", help='log file, used when logging to a file')
    p.add('-temperature', type=float, default=24.0, help='air temperature in degree Celsius')
    p.add('-max_freq', type=float, default=2000.0, help='maximum frequency in Hz')
    p.add('-step_freq', type=float, default=2.5, help='frequency step in Hz')
    p.add('-num_freq', type=int, default=0, help='number of frequency steps, overrides step_freq if > 0')
    p.add('-rad_calc', type=str, choices=[r.name for r in Radiation], default=Radiation.PIPE.name, help='radiation impedance model')
    p.add('-dump_calc', type=str, choices=[d.name for d in Damping], default=Damping.WALL.name, help='wall loss model')
    p.add('-sec_var_calc', action='store_true', help='use the section variation transfer matrix for tapers')
    return p


class App:
    """
    Central app: logging and config.
    """

    def __init__(self, log_to_file=False, argv=None):
        self.config = None
        self.argv = argv

        conf = self.get_config()
        self.init_logging(filename=conf["log_file"], log_to_file=log_to_file)

        conf_str = "Configuration:"
        for key in sorted(conf.keys()):
            conf_str += f"\n{key}: {conf[key]}"
        logging.debug(conf_str)

    def get_config(self):
        """Load and cache config (from ./*.conf and the command line)."""

        if self.config is None:
            p = configargparse.ArgParser(default_config_files=['./*.conf'])
            add_options(p)

            options = p.parse_known_args(args=self.argv)[0]
            self.config = {}

            for key, value in vars(options).items():
                self.config[key] = value

        return self.config

    def init_logging(self, filename="./log.txt", log_to_file=True):
        """Configure root logger: file and console, level from config."""
        logFormatter = logging.Formatter("%(asctime)s [%(levelname)s] {%(filename)s:%(lineno)d} %(message)s")
        rootLogger = logging.getLogger()

        if log_to_file:
            fileHandler = logging.FileHandler(filename)
            fileHandler.setFormatter(logFormatter)
            rootLogger.addHandler(fileHandler)

        consoleHandler = logging.StreamHandler()
        consoleHandler.setFormatter(logFormatter)
        rootLogger.addHandler(consoleHandler)

        level = self.get_config()["log_level"]
        if level == "info":
            rootLogger.setLevel(logging.INFO)
        elif level == "debug":
            rootLogger.setLevel(logging.DEBUG)
        elif level == "error":
            rootLogger.setLevel(logging.ERROR)
        elif level == "warn":
            rootLogger.setLevel(logging.WARN)

    def start_message(self):
        """Log ASCII banner and command line."""
        msg = r'''
 _ __ ___   ___ _ __  ___ _   _ _ __| | __ _| |__
| '_ ` _ \ / _ \ '_ \/ __| | | | '__| |/ _` | '_ \
| | | | | |  __/ | | \__ \ |_| | |  | | (_| | |_) |
|_| |_| |_|\___|_| |_|___/\__,_|_|  |_|\__,_|_.__/
'''
        msg += "Starting " + " ".join(sys.argv)
        logging.info(msg)
