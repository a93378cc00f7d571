"""
Command line interface: compute the input impedance of a bore file.

    python -m mensurlab trumpet.men -max_freq 1500 -step_freq 1 -o trumpet.imp
"""

import os
import sys
import logging
import configargparse

from . import app
from .acoustical_simulation import calcimp, impedance_table, write_impedance, get_notes
from .constants import AcousticConstants
from .errors import MensurError
from .readers import read_mensur


def build_parser():
    p = configargparse.ArgParser(default_config_files=['./*.conf'], description="Input impedance of wind instrument bores")
    p.add('mensur', type=str, help='bore file (.men or .xmen)')
    p.add('-o', '--output', type=str, default=None, help='output .imp file, default: next to the bore file')
    p.add('--transfer', action='store_true', help='compute the pressure transfer ratio instead of the impedance')
    p.add('--plot', type=str, default=None, help='save a plot of bore and impedance to this file')
    p.add('--print_men', action='store_true', help='print the normalized bore and exit')
    p.add('--progress', action='store_true', help='show a progress bar')
    app.add_options(p)
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    a = app.init_app(argv=argv if argv is not None else sys.argv[1:])
    a.start_message()

    try:
        mensur = read_mensur(args.mensur)
    except MensurError as e:
        logging.error(str(e))
        return 1

    if args.print_men:
        sys.stdout.write(mensur.format_men())
        return 0

    const = AcousticConstants.from_config(vars(args))
    freq, real, imag, mag = calcimp(
        mensur,
        max_freq=args.max_freq,
        step_freq=args.step_freq,
        num_freq=args.num_freq,
        temperature=const.temperature,
        rad_calc=const.radiation,
        dump_calc=const.damping,
        sec_var_calc=const.sec_var,
        transfer=args.transfer,
        progress=args.progress,
    )
    table = impedance_table(freq, real, imag, mag)

    output = args.output
    if output is None:
        output = os.path.splitext(args.mensur)[0] + ".imp"
    write_impedance(output, table)

    if not args.transfer:
        notes = get_notes(freq, real + 1j * imag)
        if len(notes) > 0:
            logging.info("Resonances:\n" + notes.head(12).to_string(index=False))

    if args.plot is not None:
        from .visualize import plot_mensur_impedance
        fig = plot_mensur_impedance(mensur, freq, mag)
        fig.savefig(args.plot)
        logging.info(f"saved plot to {args.plot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
