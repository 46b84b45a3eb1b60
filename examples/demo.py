"""Demo script: load Fe from JSON, orbit the camera, and save frames."""

import logging
from pathlib import Path

from crystalscene import CrystalViewer, FigureMountPoint, setup_logging

FIXTURES = Path(__file__).resolve().parent.parent / "tests" / "fixtures"
OUTPUT_DIR = Path(__file__).resolve().parent


def main():
    setup_logging(logging.INFO)
    viewer = CrystalViewer(FigureMountPoint(640, 480))
    structure = viewer.load(FIXTURES / "fe_4c.json")
    print(f"Loaded {len(structure)} atoms: {structure.names}")

    for i in range(4):
        viewer.controller.rotate(0.4, 0.1)
        out = OUTPUT_DIR / f"fe_{i}.png"
        viewer.save(out)
        print(f"Rendered to {out}")
    print(f"Camera transforms published: {viewer.broadcast.publish_count}")


if __name__ == "__main__":
    main()
