"""Basic usage example using the convenience API."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from jsonfile import open_file, register_class
from jsonfile.renderers import render_file


@register_class(version=2)
class Measurement(BaseModel):
    """One calibrated reading"""

    name: str = ""
    value: float = 0.0
    errors: list[float] = Field(default_factory=list)


def main() -> None:
    output_dir = Path("artifacts")
    output_dir.mkdir(exist_ok=True)
    path = output_dir / "measurements.json"

    with open_file(str(path), "recreate", "Calibration run") as file:
        file.write_object(Measurement(name="temperature", value=21.5, errors=[0.1, 0.2]))
        file.write_object(Measurement(name="pressure", value=1013.2), title="sea level")
        file.write_object(Measurement(name="temperature", value=21.7))

    with open_file(str(path)) as file:
        latest = file.get("temperature")
        first = file.get("temperature;1")
        print(f"temperature: {first.value} -> {latest.value}")
        print(render_file(file, verbosity="full"))
    print(f"File saved to: {path}")


if __name__ == "__main__":
    main()
