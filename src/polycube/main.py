"""
Application Initialization
==========================
This module constructs the MVC (Model-View-Controller) architecture and starts
the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the shared DataStore and the PolyCubeController (with the
   three cubes).
2. Instantiates the Main Window (View) and passes the controller into it.
3. Loads the dataset given on the command line, or the bundled sample.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

import pyqtgraph as pg
from PySide6.QtWidgets import QApplication, QMessageBox

from polycube import config
from polycube.controller.sync import PolyCubeController
from polycube.logging_config import setup_logging
from polycube.model.datastore import DataStore
from polycube.view.main_window import MainWindow

logger = logging.getLogger(__name__)

pg.setConfigOption("background", "w")
pg.setConfigOption("foreground", "k")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="polycube", description="Synchronized space-time cubes.")
    parser.add_argument("dataset", nargs="?", default=config.SAMPLE_DATASET_PATH,
                        help="CSV/TSV/JSON dataset (defaults to the bundled sample)")
    parser.add_argument("--positions", default=None, help="JSON file with network layout positions")
    parser.add_argument("--slices", type=int, default=config.DEFAULT_NUM_SLICES, help="Initial number of time slices")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # 2. Create the Qt Application
    app = QApplication(sys.argv[:1])
    app.setApplicationName("PolyCube")

    # 3. Initialize the Data Model and the controller
    dm = DataStore(num_slices=args.slices)
    controller = PolyCubeController(dm)

    # 4. Initialize the Main Window, passing the controller
    window = MainWindow(controller)
    window.show()

    # 5. Load the initial dataset
    if args.dataset and os.path.exists(args.dataset):
        try:
            window.load_dataset(args.dataset, args.positions)
        except (OSError, ValueError) as e:
            logger.exception(f"Failed to load initial dataset {args.dataset}")
            QMessageBox.critical(window, "Error", f"Could not open dataset:\n{e}")
    else:
        logger.warning(f"Dataset not found: {args.dataset}")

    # 6. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
