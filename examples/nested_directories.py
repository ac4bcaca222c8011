"""Example 2: Nested directories and reproducible output.

Writes a small detector layout into subdirectories, then reopens the file in
update mode to append a second cycle of one object.

Validates: mkdir / path lookups, cycles across sessions, reproducible mode
producing byte-identical documents.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field

from jsonfile import Counted, FileConfig, FixedArray, JsonFile, register_class


@register_class
class Hit(BaseModel):
    position: Annotated[list[float], FixedArray(3)] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    energy: float = 0.0


@register_class
class Track(BaseModel):
    n_hits: int = 0
    hits: Annotated[list[Hit], Counted("n_hits")] = Field(default_factory=list)
    charge: int = 1


def write(path: Path) -> None:
    config = FileConfig(reproducible=True)
    with JsonFile(str(path), "recreate", "Detector layout", config=config) as file:
        tracker = file.mkdir("tracker", "Inner tracker")
        hits = [Hit(position=[0.0, 1.0, float(i)], energy=0.5 * i) for i in range(3)]
        tracker.write_object(Track(n_hits=len(hits), hits=hits), "track")
        calo = file.mkdir("calorimeter")
        calo.mkdir("barrel").write_object(Hit(energy=12.0), "cluster")


def main() -> None:
    output_dir = Path("artifacts")
    output_dir.mkdir(exist_ok=True)
    first, second = output_dir / "layout_a.json", output_dir / "layout_b.json"
    write(first)
    write(second)
    print(f"reproducible: {first.read_text() == second.read_text()}")

    with JsonFile(str(first), "update") as file:
        barrel = file.get_directory("calorimeter/barrel")
        barrel.write_object(Hit(energy=13.5), "cluster")

    with JsonFile(str(first)) as file:
        for directory, key in file.walk():
            print(f"{directory.path:<30} {key.name};{key.cycle} [{key.class_name}]")
        print(f"latest cluster energy: {file.get('calorimeter/barrel/cluster').energy}")


if __name__ == "__main__":
    main()
