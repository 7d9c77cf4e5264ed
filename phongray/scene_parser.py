"""
Scene description parsers.

Two formats are understood.

The plain text format is a whitespace-separated stream of numbers and
object tags:
```
    640 480                 # image width, height
    0 0 5                   # camera position
    0 0 0                   # look target
    0 1 0                   # global up
    45 1                    # vertical fov (degrees), focal length
    3 2                     # max depth, object count
    sphere 0 0 0 1          # "sphere" + center + radius
    0.1 0 0  0.7 0 0  1 1 1  32     # ambient, diffuse, specular, shininess
    triangle -1 -1 0  1 -1 0  0 1 0 # any other tag + vertices A B C
    0.1 0.1 0.1  0.5 0.5 0.5  0 0 0  1
    1                       # light count
    5 5 5 1                 # position xyzw (w = 0: directional)
    0.2 0.2 0.2  1 1 1  1 1 1       # ambient, diffuse, specular
    1 0 0                   # constant, linear, quadratic attenuation
```

(The comments above are for illustration; the text format has none.)

The structured format is YAML or JSON:
```yaml
camera:
  position: [0, 0, 5]
  look_target: [0, 0, 0]
  global_up: [0, 1, 0]
  fov_y: 45
  focal_length: 1
  width: 640
  height: 480

render:
  max_depth: 3
  samples: 16
  antialias: true
  background: [0, 0.5, 0.5]

materials:
  red:
    ambient: [0.1, 0, 0]
    diffuse: [0.7, 0, 0]
    specular: [1, 1, 1]
    shininess: 32

objects:
  - type: sphere
    center: [0, 0, 0]
    radius: 1
    material: red

lights:
  - type: point
    position: [5, 5, 5]
    ambient: [0.2, 0.2, 0.2]
    diffuse: [1, 1, 1]
    specular: [1, 1, 1]
    attenuation: [1, 0, 0]
```
"""

from __future__ import annotations
import dataclasses
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from .vec3 import Vec3, Color
from .camera import Camera
from .materials import Material
from .shapes import Geometry, Sphere, Triangle
from .lights import Light
from .scene import Scene
from .renderer import RenderSettings

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """Error during scene parsing."""
    pass


@dataclass
class SceneDescription:
    """Everything a scene file supplies to the renderer.

    Attributes:
        scene: Objects and lights
        camera: Camera, which also fixes the image size
        max_depth: Maximum recursion depth
        overrides: RenderSettings fields set by the file
    """
    scene: Scene
    camera: Camera
    max_depth: int
    overrides: Dict[str, Any] = field(default_factory=dict)

    def apply(self, settings: RenderSettings) -> RenderSettings:
        """Return ``settings`` with the file's overrides applied."""
        if not self.overrides:
            return settings
        return dataclasses.replace(settings, **self.overrides)


class _TokenStream:
    """Sequential reader over whitespace-separated tokens."""

    def __init__(self, text: str):
        self._tokens: Iterator[str] = iter(text.split())
        self.position = 0

    def word(self, what: str) -> str:
        try:
            token = next(self._tokens)
        except StopIteration:
            raise SceneParseError(f"Unexpected end of scene data while reading {what}") from None
        self.position += 1
        return token

    def number(self, what: str) -> float:
        token = self.word(what)
        try:
            value = float(token)
        except ValueError:
            raise SceneParseError(
                f"Expected a number for {what} at token {self.position}, got {token!r}"
            ) from None
        if not math.isfinite(value):
            raise SceneParseError(
                f"Expected a finite number for {what} at token {self.position}, got {token!r}"
            )
        return value

    def integer(self, what: str) -> int:
        token = self.word(what)
        try:
            return int(token)
        except ValueError:
            raise SceneParseError(
                f"Expected an integer for {what} at token {self.position}, got {token!r}"
            ) from None

    def vec3(self, what: str) -> Vec3:
        return Vec3(self.number(what), self.number(what), self.number(what))


def _to_float(value: Any, what: str) -> float:
    """Convert a structured-format value to a finite float."""
    if isinstance(value, bool):
        raise SceneParseError(f"Expected a number for {what}, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SceneParseError(f"Expected a number for {what}, got {value!r}") from None
    if not math.isfinite(number):
        raise SceneParseError(f"Expected a finite number for {what}, got {value!r}")
    return number


def _to_int(value: Any, what: str) -> int:
    """Convert a structured-format value to an integer."""
    if isinstance(value, bool):
        raise SceneParseError(f"Expected an integer for {what}, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise SceneParseError(f"Expected an integer for {what}, got {value!r}")


def _expect_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise SceneParseError(f"Expected a mapping for {what}, got {data!r}")
    return data


def _expect_list(data: Any, what: str) -> list:
    if not isinstance(data, (list, tuple)):
        raise SceneParseError(f"Expected a list for {what}, got {data!r}")
    return data


class SceneParser:
    """Parser for scene descriptions in text, YAML or JSON form."""

    def __init__(self):
        self.materials: Dict[str, Material] = {}
        self.objects: List[Geometry] = []
        self.lights: List[Light] = []
        self.camera: Optional[Camera] = None
        self.max_depth: int = 1
        self.overrides: Dict[str, Any] = {}

    def parse_file(self, filepath: Union[str, Path]) -> SceneDescription:
        """Parse a scene file.

        ``.yaml``, ``.yml`` and ``.json`` files use the structured format;
        anything else is read as the plain text format.

        Args:
            filepath: Path to the scene file

        Returns:
            The parsed scene description
        """
        path = Path(filepath)
        if not path.is_file():
            raise SceneParseError(f"Scene file not found: {filepath}")

        try:
            content = path.read_text()
        except OSError as exc:
            raise SceneParseError(f"Cannot read scene file {filepath}: {exc}") from exc

        logger.debug("Parsing scene file %s", path)

        if path.suffix in ('.yaml', '.yml'):
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as exc:
                raise SceneParseError(f"Invalid YAML in {filepath}: {exc}") from exc
        elif path.suffix == '.json':
            try:
                data = json.loads(content)
            except json.JSONDecodeError as exc:
                raise SceneParseError(f"Invalid JSON in {filepath}: {exc}") from exc
        else:
            return self.parse_text(content)

        if not isinstance(data, dict):
            raise SceneParseError(f"Scene file {filepath} must contain a mapping at the top level")
        return self.parse_dict(data)

    def parse_text(self, text: str) -> SceneDescription:
        """Parse the plain text scene format."""
        tokens = _TokenStream(text)

        width = tokens.integer("image width")
        height = tokens.integer("image height")
        position = tokens.vec3("camera position")
        look_target = tokens.vec3("camera look target")
        global_up = tokens.vec3("camera global up")
        fov_y = tokens.number("vertical field of view")
        focal_length = tokens.number("focal length")
        self.camera = self._make_camera(
            position, look_target, global_up, fov_y, focal_length, width, height
        )

        self.max_depth = tokens.integer("max depth")

        num_objects = tokens.integer("object count")
        for index in range(num_objects):
            tag = tokens.word(f"object {index} type")
            if tag == 'sphere':
                center = tokens.vec3(f"sphere {index} center")
                radius = tokens.number(f"sphere {index} radius")
                material = self._read_material(tokens, index)
                obj = Sphere(center, radius, material)
            else:
                a = tokens.vec3(f"triangle {index} vertex A")
                b = tokens.vec3(f"triangle {index} vertex B")
                c = tokens.vec3(f"triangle {index} vertex C")
                material = self._read_material(tokens, index)
                obj = Triangle(a, b, c, material)
            self._add_object(obj)

        num_lights = tokens.integer("light count")
        for index in range(num_lights):
            what = f"light {index}"
            position = tokens.vec3(f"{what} position")
            w = tokens.number(f"{what} position w")
            ambient = tokens.vec3(f"{what} ambient")
            diffuse = tokens.vec3(f"{what} diffuse")
            specular = tokens.vec3(f"{what} specular")
            constant = tokens.number(f"{what} constant attenuation")
            linear = tokens.number(f"{what} linear attenuation")
            quadratic = tokens.number(f"{what} quadratic attenuation")
            self.lights.append(
                Light(position, w, ambient, diffuse, specular, constant, linear, quadratic)
            )

        return self._build()

    def _read_material(self, tokens: _TokenStream, index: int) -> Material:
        what = f"object {index} material"
        ambient = tokens.vec3(f"{what} ambient")
        diffuse = tokens.vec3(f"{what} diffuse")
        specular = tokens.vec3(f"{what} specular")
        shininess = tokens.number(f"{what} shininess")
        return self._make_material(ambient, diffuse, specular, shininess)

    def parse_dict(self, data: Dict[str, Any]) -> SceneDescription:
        """Parse a scene from a dictionary (the structured format).

        Args:
            data: Scene description dictionary

        Returns:
            The parsed scene description
        """
        data = _expect_mapping(data, "scene")
        if 'camera' not in data:
            raise SceneParseError("Scene is missing the 'camera' section")

        # Parse materials first (objects reference them)
        if 'materials' in data:
            self._parse_materials(_expect_mapping(data['materials'], "materials"))

        if 'objects' in data:
            self._parse_objects(_expect_list(data['objects'], "objects"))

        if 'lights' in data:
            self._parse_lights(_expect_list(data['lights'], "lights"))

        self._parse_camera(_expect_mapping(data['camera'], "camera"))

        if 'render' in data:
            self._parse_render(_expect_mapping(data['render'], "render"))

        return self._build()

    def _build(self) -> SceneDescription:
        if self.max_depth < 1:
            logger.warning("Scene max depth %d is below 1; using 1", self.max_depth)
            self.max_depth = 1

        logger.debug("Parsed %d objects and %d lights", len(self.objects), len(self.lights))
        return SceneDescription(
            scene=Scene(self.objects, self.lights),
            camera=self.camera,
            max_depth=self.max_depth,
            overrides=dict(self.overrides)
        )

    def _add_object(self, obj: Geometry) -> None:
        if isinstance(obj, Sphere) and obj.degenerate:
            logger.warning("Sphere with invalid radius %s will never be hit", obj.radius)
        elif isinstance(obj, Triangle) and obj.degenerate:
            logger.warning("Degenerate triangle %r will never be hit", obj)
        self.objects.append(obj)

    @staticmethod
    def _make_camera(*args) -> Camera:
        try:
            return Camera(*args)
        except ValueError as exc:
            raise SceneParseError(f"Invalid camera: {exc}") from exc

    @staticmethod
    def _make_material(ambient: Color, diffuse: Color, specular: Color, shininess: float) -> Material:
        try:
            return Material(ambient, diffuse, specular, shininess)
        except ValueError as exc:
            raise SceneParseError(f"Invalid material: {exc}") from exc

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from a list or an x/y/z mapping."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Cannot parse Vec3 from {data!r}: expected 3 values")
            return Vec3(*(_to_float(value, f"vector {data!r}") for value in data))
        elif isinstance(data, dict):
            return Vec3(
                _to_float(data.get('x', 0), "x"),
                _to_float(data.get('y', 0), "y"),
                _to_float(data.get('z', 0), "z")
            )
        raise SceneParseError(f"Cannot parse Vec3 from: {data!r}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from a list, an r/g/b mapping or a hex string."""
        if isinstance(data, dict):
            return Color(
                _to_float(data.get('r', 0), "red"),
                _to_float(data.get('g', 0), "green"),
                _to_float(data.get('b', 0), "blue")
            )
        elif isinstance(data, str):
            hex_color = data[1:] if data.startswith('#') else ''
            if len(hex_color) == 6:
                try:
                    r = int(hex_color[0:2], 16) / 255.0
                    g = int(hex_color[2:4], 16) / 255.0
                    b = int(hex_color[4:6], 16) / 255.0
                except ValueError:
                    pass
                else:
                    return Color(r, g, b)
            raise SceneParseError(f"Cannot parse color from string: {data}")
        return self._parse_vec3(data)

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        return self._make_material(
            self._parse_color(mat_data.get('ambient', [0, 0, 0])),
            self._parse_color(mat_data.get('diffuse', [0.5, 0.5, 0.5])),
            self._parse_color(mat_data.get('specular', [0, 0, 0])),
            _to_float(mat_data.get('shininess', 1.0), "material shininess")
        )

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        for name, mat_data in materials_data.items():
            mat_data = _expect_mapping(mat_data, f"material {name!r}")
            self.materials[name] = self._parse_material(mat_data)

    def _get_material(self, mat_ref: Any) -> Material:
        """Get a material by name or inline definition."""
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._parse_material(mat_ref)
        raise SceneParseError(f"Invalid material reference: {mat_ref!r}")

    def _parse_objects(self, objects_data: list) -> None:
        """Parse objects section."""
        for index, obj_data in enumerate(objects_data):
            obj_data = _expect_mapping(obj_data, f"object {index}")
            obj_type = str(obj_data.get('type', 'sphere')).lower()
            if 'material' not in obj_data:
                raise SceneParseError(f"Object of type {obj_type} has no material")
            material = self._get_material(obj_data['material'])

            try:
                if obj_type == 'sphere':
                    center = self._parse_vec3(obj_data.get('center', [0, 0, 0]))
                    radius = _to_float(obj_data.get('radius', 1.0), f"sphere {index} radius")
                    self._add_object(Sphere(center, radius, material))

                elif obj_type == 'triangle':
                    a = self._parse_vec3(obj_data['a'])
                    b = self._parse_vec3(obj_data['b'])
                    c = self._parse_vec3(obj_data['c'])
                    self._add_object(Triangle(a, b, c, material))

                else:
                    raise SceneParseError(f"Unknown object type: {obj_type}")
            except KeyError as exc:
                raise SceneParseError(f"{obj_type} is missing field {exc}") from exc

    def _parse_lights(self, lights_data: list) -> None:
        """Parse lights section."""
        for index, light_data in enumerate(lights_data):
            light_data = _expect_mapping(light_data, f"light {index}")
            light_type = str(light_data.get('type', 'point')).lower()
            ambient = self._parse_color(light_data.get('ambient', [0, 0, 0]))
            diffuse = self._parse_color(light_data.get('diffuse', [1, 1, 1]))
            specular = self._parse_color(light_data.get('specular', [1, 1, 1]))

            if light_type == 'point':
                position = self._parse_vec3(light_data.get('position', [0, 5, 0]))
                constant, linear, quadratic = self._parse_attenuation(
                    light_data.get('attenuation', [1, 0, 0])
                )
                self.lights.append(
                    Light.point(position, ambient, diffuse, specular, constant, linear, quadratic)
                )

            elif light_type == 'directional':
                direction = self._parse_vec3(light_data.get('direction', [0, -1, 0]))
                self.lights.append(Light.directional(direction, ambient, diffuse, specular))

            else:
                raise SceneParseError(f"Unknown light type: {light_type}")

    @staticmethod
    def _parse_attenuation(data: Any) -> tuple[float, float, float]:
        if not isinstance(data, (list, tuple)) or len(data) != 3:
            raise SceneParseError(f"Attenuation must be [constant, linear, quadratic], got {data!r}")
        constant, linear, quadratic = (_to_float(value, "attenuation") for value in data)
        return constant, linear, quadratic

    def _parse_camera(self, camera_data: Dict[str, Any]) -> None:
        """Parse camera section."""
        self.camera = self._make_camera(
            self._parse_vec3(camera_data.get('position', [0, 0, 5])),
            self._parse_vec3(camera_data.get('look_target', [0, 0, 0])),
            self._parse_vec3(camera_data.get('global_up', [0, 1, 0])),
            _to_float(camera_data.get('fov_y', 45), "camera fov_y"),
            _to_float(camera_data.get('focal_length', 1.0), "camera focal_length"),
            _to_int(camera_data.get('width', 640), "camera width"),
            _to_int(camera_data.get('height', 480), "camera height")
        )

    def _parse_render(self, render_data: Dict[str, Any]) -> None:
        """Parse render section into a max depth and settings overrides."""
        self.max_depth = _to_int(render_data.get('max_depth', 1), "render max_depth")
        if 'samples' in render_data:
            self.overrides['samples_per_pixel'] = _to_int(render_data['samples'], "render samples")
        if 'antialias' in render_data:
            self.overrides['antialias'] = bool(render_data['antialias'])
        if 'background' in render_data:
            self.overrides['background_color'] = self._parse_color(render_data['background'])
        if 'seed' in render_data:
            self.overrides['seed'] = _to_int(render_data['seed'], "render seed")


def load_scene(filepath: Union[str, Path]) -> SceneDescription:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        The parsed scene description
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene_text(text: str) -> SceneDescription:
    """Convenience function to parse the plain text scene format."""
    return SceneParser().parse_text(text)


def parse_scene(data: Dict[str, Any]) -> SceneDescription:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary

    Returns:
        The parsed scene description
    """
    parser = SceneParser()
    return parser.parse_dict(data)
