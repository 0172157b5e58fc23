"""
Configuration management for orbitcam.

Handles:
- Controller speeds and limits
- Start-up view framing
- YAML config file loading and saving
- Command-line argument parsing for the replay tool
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple
import argparse
import math

from .state import OrbitLimits, OrbitSpeeds, PitchClamp


@dataclass
class OrbitConfig:
    """Controller speeds and limits."""
    rotation_speed: float = 0.3
    pan_speed: float = 0.002
    zoom_speed: float = 0.002
    min_distance: float = 1.0
    max_distance: float = 100.0
    min_pitch: Optional[float] = None  # None = unbounded
    max_pitch: Optional[float] = None

    def __post_init__(self):
        # Invalid ranges fail here, before any controller exists
        self._limits = OrbitLimits(
            min_distance=self.min_distance,
            max_distance=self.max_distance,
            pitch=PitchClamp.from_bounds(self.min_pitch, self.max_pitch)
        )
        self._speeds = OrbitSpeeds(
            rotation_speed=self.rotation_speed,
            pan_speed=self.pan_speed,
            zoom_speed=self.zoom_speed
        )

    def limits(self) -> OrbitLimits:
        return self._limits

    def speeds(self) -> OrbitSpeeds:
        return self._speeds


@dataclass
class ViewConfig:
    """Initial camera placement."""
    position: Tuple[float, float, float] = (0.0, 0.0, 5.0)
    target: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    # Applied after construction; None keeps the value derived from position
    distance: Optional[float] = 5.0
    pitch: Optional[float] = -14.0
    yaw: Optional[float] = 45.0


@dataclass
class OutputConfig:
    """Replay output configuration."""
    path: Optional[str] = None  # None = stdout
    indent: int = 2


@dataclass
class Config:
    """Complete configuration."""
    orbit: OrbitConfig = field(default_factory=OrbitConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Config":
        """
        Create config from parsed command-line arguments.

        Loads config file if specified, then applies command-line overrides.

        Args:
            args: Parsed arguments from argparse

        Returns:
            Config instance

        Raises:
            ValueError: If the resulting orbit configuration is invalid
        """
        config = cls.from_yaml(args.config) if args.config else cls()

        overrides = {}
        for name in ("rotation_speed", "pan_speed", "zoom_speed",
                     "min_distance", "max_distance", "min_pitch", "max_pitch"):
            value = getattr(args, name, None)
            if value is not None:
                overrides[name] = value
        if overrides:
            config.orbit = replace(config.orbit, **overrides)

        if args.output:
            config.output.path = args.output

        return config

    @classmethod
    def from_yaml(cls, filepath: str) -> "Config":
        """
        Load config from YAML file.

        Args:
            filepath: Path to YAML config file

        Returns:
            Config instance
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for config files. "
                "Install with: pip install pyyaml"
            )

        with open(filepath, 'r') as f:
            data = yaml.safe_load(f) or {}

        orbit_data = data.get('orbit', {})
        orbit = OrbitConfig(
            rotation_speed=orbit_data.get('rotation_speed', 0.3),
            pan_speed=orbit_data.get('pan_speed', 0.002),
            zoom_speed=orbit_data.get('zoom_speed', 0.002),
            min_distance=orbit_data.get('min_distance', 1.0),
            max_distance=orbit_data.get('max_distance', 100.0),
            min_pitch=_optional_float(orbit_data.get('min_pitch')),
            max_pitch=_optional_float(orbit_data.get('max_pitch'))
        )

        view_data = data.get('view', {})
        view = ViewConfig(
            position=tuple(view_data.get('position', [0.0, 0.0, 5.0])),
            target=tuple(view_data.get('target', [0.0, 0.0, 0.0])),
            distance=view_data.get('distance', 5.0),
            pitch=view_data.get('pitch', -14.0),
            yaw=view_data.get('yaw', 45.0)
        )

        output_data = data.get('output', {})
        output = OutputConfig(
            path=output_data.get('path'),
            indent=output_data.get('indent', 2)
        )

        return cls(orbit=orbit, view=view, output=output)

    def to_yaml(self, filepath: str) -> None:
        """
        Save config to YAML file.

        Args:
            filepath: Path to save YAML config file
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for config files. "
                "Install with: pip install pyyaml"
            )

        data = {
            'orbit': {
                'rotation_speed': self.orbit.rotation_speed,
                'pan_speed': self.orbit.pan_speed,
                'zoom_speed': self.orbit.zoom_speed,
                'min_distance': self.orbit.min_distance,
                'max_distance': self.orbit.max_distance,
                'min_pitch': self.orbit.min_pitch,
                'max_pitch': self.orbit.max_pitch
            },
            'view': {
                'position': list(self.view.position),
                'target': list(self.view.target),
                'distance': self.view.distance,
                'pitch': self.view.pitch,
                'yaw': self.view.yaw
            },
            'output': {
                'path': self.output.path,
                'indent': self.output.indent
            }
        }

        with open(filepath, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @staticmethod
    def generate_default_config_template() -> str:
        """
        Generate a default configuration template with comments.

        Returns:
            YAML string with comments explaining each option
        """
        return """# orbitcam configuration file
#
# Command-line arguments override values specified here.

# Controller speeds and limits
orbit:
  # Degrees of yaw/pitch per pixel of drag
  rotation_speed: 0.3

  # Fraction of the camera distance moved per pixel of pan drag
  pan_speed: 0.002

  # Fraction of the camera distance changed per wheel unit
  # (pinch zoom uses twice this rate)
  zoom_speed: 0.002

  # Camera distance range (min_distance must be > 0)
  min_distance: 1.0
  max_distance: 100.0

  # Pitch range in degrees (null = unbounded).
  # Pitch is only clamped when BOTH bounds are set.
  min_pitch: null
  max_pitch: null

# Initial view
view:
  # Camera position and orbit target used to derive the starting orbit
  position: [0.0, 0.0, 5.0]
  target: [0.0, 0.0, 0.0]

  # Applied after construction (null = keep the derived value)
  distance: 5.0
  pitch: -14.0
  yaw: 45.0

# Replay output
output:
  # File for recorded poses (null = stdout)
  path: null

  # JSON indentation
  indent: 2
"""


def _optional_float(value) -> Optional[float]:
    """Map YAML null and .inf/-.inf to None (no bound)."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create command-line argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="orbitcam",
        description="Replay recorded pointer/touch gestures through the orbit camera controller and print the resulting camera poses",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog="Configuration file (YAML) can be used to set all options. Command-line arguments override config file values."
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to YAML configuration file"
    )

    parser.add_argument(
        "events",
        nargs='?',
        help="Path to recorded event script (.yaml or .json)"
    )

    parser.add_argument(
        "--output", "-o",
        help="File to write recorded poses to (default: stdout)"
    )

    parser.add_argument(
        "--save-config",
        metavar="PATH",
        help="Save default configuration to YAML file and exit"
    )

    speed_group = parser.add_argument_group("Speed Options")
    speed_group.add_argument(
        "--rotation-speed",
        type=float,
        metavar="DEG_PER_PX",
        help="Rotation speed in degrees per pixel (default: 0.3)"
    )
    speed_group.add_argument(
        "--pan-speed",
        type=float,
        help="Pan speed as fraction of distance per pixel (default: 0.002)"
    )
    speed_group.add_argument(
        "--zoom-speed",
        type=float,
        help="Zoom speed as fraction of distance per wheel unit (default: 0.002)"
    )

    limit_group = parser.add_argument_group("Limit Options")
    limit_group.add_argument(
        "--min-distance",
        type=float,
        help="Closest camera distance (default: 1.0)"
    )
    limit_group.add_argument(
        "--max-distance",
        type=float,
        help="Farthest camera distance (default: 100.0)"
    )
    limit_group.add_argument(
        "--min-pitch",
        type=float,
        metavar="DEGREES",
        help="Lowest pitch; only used together with --max-pitch"
    )
    limit_group.add_argument(
        "--max-pitch",
        type=float,
        metavar="DEGREES",
        help="Highest pitch; only used together with --min-pitch"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser
