"""Tests for scene description parsing."""

import json
import pytest

from phongray.vec3 import Vec3, Point3, Color
from phongray.shapes import Sphere, Triangle
from phongray.renderer import RenderSettings
from phongray.scene_parser import (
    SceneParser, SceneParseError, SceneDescription,
    load_scene, parse_scene, parse_scene_text
)

TEXT_SCENE = """
64 48
0 0 5
0 0 0
0 1 0
45 1
3 2
sphere
0 0 0 1
0.1 0 0
0.7 0 0
1 1 1
32
triangle
-1 -1 0
1 -1 0
0 1 0
0.1 0.1 0.1
0.5 0.5 0.5
0 0 0
1
2
5 5 5 1
0.2 0.2 0.2
1 1 1
1 1 1
1 0.1 0.01
0 -1 0 0
0.1 0.1 0.1
0.3 0.3 0.3
0.3 0.3 0.3
1 0 0
"""

DICT_SCENE = {
    'camera': {
        'position': [0, 1, 6],
        'look_target': [0, 0, 0],
        'global_up': [0, 1, 0],
        'fov_y': 40,
        'focal_length': 1.5,
        'width': 32,
        'height': 24,
    },
    'render': {
        'max_depth': 4,
        'samples': 8,
        'antialias': False,
        'background': [0.1, 0.2, 0.3],
        'seed': 99,
    },
    'materials': {
        'mirror': {
            'ambient': [0.02, 0.02, 0.02],
            'diffuse': [0.1, 0.1, 0.1],
            'specular': [1, 1, 1],
            'shininess': 120,
        },
    },
    'objects': [
        {'type': 'sphere', 'center': [-1, 0, 0], 'radius': 0.8, 'material': 'mirror'},
        {'type': 'triangle', 'a': [-2, -1, -2], 'b': [2, -1, -2], 'c': [0, 2, -2],
         'material': {'diffuse': '#ff8000', 'shininess': 4}},
    ],
    'lights': [
        {'type': 'point', 'position': [3, 4, 4], 'ambient': [0.2, 0.2, 0.2],
         'attenuation': [1, 0.01, 0.001]},
        {'type': 'directional', 'direction': [0, -1, -0.5]},
    ],
}


class TestTextFormat:
    """Test the plain text scene format."""

    def test_camera(self):
        description = parse_scene_text(TEXT_SCENE)
        camera = description.camera

        assert camera.image_width == 64
        assert camera.image_height == 48
        assert camera.position == Point3(0, 0, 5)
        assert camera.look_target == Point3(0, 0, 0)
        assert camera.global_up == Vec3(0, 1, 0)
        assert camera.fov_y == 45
        assert camera.focal_length == 1

    def test_max_depth(self):
        assert parse_scene_text(TEXT_SCENE).max_depth == 3

    def test_objects_in_order(self):
        objects = parse_scene_text(TEXT_SCENE).scene.objects

        assert len(objects) == 2
        sphere, triangle = objects
        assert isinstance(sphere, Sphere)
        assert sphere.center == Point3(0, 0, 0)
        assert sphere.radius == 1
        assert sphere.material.diffuse == Color(0.7, 0, 0)
        assert sphere.material.shininess == 32

        assert isinstance(triangle, Triangle)
        assert triangle.a == Point3(-1, -1, 0)
        assert triangle.c == Point3(0, 1, 0)
        assert triangle.material.ambient == Color(0.1, 0.1, 0.1)

    def test_any_non_sphere_tag_is_a_triangle(self):
        text = TEXT_SCENE.replace("triangle", "tri", 1)
        assert isinstance(parse_scene_text(text).scene.objects[1], Triangle)

    def test_lights(self):
        point, directional = parse_scene_text(TEXT_SCENE).scene.lights

        assert not point.is_directional
        assert point.position == Vec3(5, 5, 5)
        assert (point.constant, point.linear, point.quadratic) == (1, 0.1, 0.01)
        assert directional.is_directional
        assert directional.diffuse == Color(0.3, 0.3, 0.3)

    def test_no_overrides(self):
        description = parse_scene_text(TEXT_SCENE)
        settings = RenderSettings()
        assert description.apply(settings) is settings

    def test_truncated_input(self):
        truncated = TEXT_SCENE.strip().rsplit("\n", 2)[0]
        with pytest.raises(SceneParseError, match="end of scene data"):
            parse_scene_text(truncated)

    def test_non_numeric_token(self):
        with pytest.raises(SceneParseError, match="image height"):
            parse_scene_text("64 tall")

    @pytest.mark.parametrize("token", ["nan", "inf", "-inf"])
    def test_non_finite_token(self, token):
        text = TEXT_SCENE.replace("0 0 0 1\n0.1 0 0", f"0 0 0 {token}\n0.1 0 0", 1)
        with pytest.raises(SceneParseError, match="sphere 0 radius"):
            parse_scene_text(text)

    def test_bad_camera(self):
        text = TEXT_SCENE.replace("0 1 0\n45 1", "0 0 1\n45 1", 1)
        with pytest.raises(SceneParseError, match="camera"):
            parse_scene_text(text)

    def test_bad_shininess(self):
        text = TEXT_SCENE.replace("\n32\n", "\n0\n", 1)
        with pytest.raises(SceneParseError, match="shininess"):
            parse_scene_text(text)

    def test_degenerate_geometry_is_kept(self):
        text = TEXT_SCENE.replace("0 0 0 1\n0.1 0 0", "0 0 0 0\n0.1 0 0", 1)
        sphere = parse_scene_text(text).scene.objects[0]
        assert sphere.radius == 0

    def test_zero_depth_becomes_one(self):
        text = TEXT_SCENE.replace("\n3 2\n", "\n0 2\n", 1)
        assert parse_scene_text(text).max_depth == 1


class TestStructuredFormat:
    """Test the YAML/JSON scene format."""

    def test_camera(self):
        camera = parse_scene(DICT_SCENE).camera
        assert camera.position == Point3(0, 1, 6)
        assert camera.focal_length == 1.5
        assert (camera.image_width, camera.image_height) == (32, 24)

    def test_objects(self):
        sphere, triangle = parse_scene(DICT_SCENE).scene.objects
        assert sphere.material.shininess == 120
        assert triangle.material.diffuse == Color(1.0, 128 / 255, 0.0)

    def test_shared_material(self):
        data = dict(DICT_SCENE)
        data['objects'] = [
            {'type': 'sphere', 'center': [0, 0, 0], 'radius': 1, 'material': 'mirror'},
            {'type': 'sphere', 'center': [3, 0, 0], 'radius': 1, 'material': 'mirror'},
        ]
        first, second = parse_scene(data).scene.objects
        assert first.material is second.material

    def test_lights(self):
        point, directional = parse_scene(DICT_SCENE).scene.lights
        assert point.position == Vec3(3, 4, 4)
        assert point.quadratic == 0.001
        assert directional.is_directional
        assert directional.direction_from(Point3(0, 0, 0)) == Vec3(0, 1, 0.5).normalize()

    def test_render_overrides(self):
        description = parse_scene(DICT_SCENE)
        settings = description.apply(RenderSettings())

        assert description.max_depth == 4
        assert settings.samples_per_pixel == 8
        assert settings.antialias is False
        assert settings.background_color == Color(0.1, 0.2, 0.3)
        assert settings.seed == 99

    def test_missing_camera(self):
        with pytest.raises(SceneParseError, match="camera"):
            parse_scene({'objects': []})

    def test_unknown_material(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'sphere', 'material': 'gold'}]
        with pytest.raises(SceneParseError, match="Unknown material"):
            parse_scene(data)

    def test_unknown_object_type(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'torus', 'material': 'mirror'}]
        with pytest.raises(SceneParseError, match="Unknown object type"):
            parse_scene(data)

    def test_triangle_missing_vertex(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'triangle', 'a': [0, 0, 0], 'b': [1, 0, 0], 'material': 'mirror'}]
        with pytest.raises(SceneParseError, match="missing field"):
            parse_scene(data)

    def test_bad_vector(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'sphere', 'center': [0, 0], 'material': 'mirror'}]
        with pytest.raises(SceneParseError, match="Vec3"):
            parse_scene(data)

    @pytest.mark.parametrize("key, value", [
        ('width', 'abc'),
        ('height', 2.5),
        ('fov_y', 'wide'),
        ('focal_length', None),
        ('position', [0, 'up', 5]),
    ])
    def test_bad_camera_values(self, key, value):
        data = dict(DICT_SCENE)
        data['camera'] = dict(DICT_SCENE['camera'], **{key: value})
        with pytest.raises(SceneParseError):
            parse_scene(data)

    def test_bad_shininess_value(self):
        data = dict(DICT_SCENE)
        data['materials'] = {'m': {'shininess': 'shiny'}}
        with pytest.raises(SceneParseError, match="shininess"):
            parse_scene(data)

    def test_bad_radius_value(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'sphere', 'radius': 'big', 'material': 'mirror'}]
        with pytest.raises(SceneParseError, match="radius"):
            parse_scene(data)

    def test_bad_color_mapping(self):
        data = dict(DICT_SCENE)
        data['render'] = {'background': {'r': 'dark', 'g': 0, 'b': 0}}
        with pytest.raises(SceneParseError, match="red"):
            parse_scene(data)

    @pytest.mark.parametrize("key, value", [
        ('max_depth', 'deep'),
        ('samples', [4]),
        ('seed', 1.5),
    ])
    def test_bad_render_values(self, key, value):
        data = dict(DICT_SCENE)
        data['render'] = {key: value}
        with pytest.raises(SceneParseError, match=key):
            parse_scene(data)

    def test_bad_attenuation_value(self):
        data = dict(DICT_SCENE)
        data['lights'] = [{'type': 'point', 'attenuation': [1, 'x', 0]}]
        with pytest.raises(SceneParseError, match="attenuation"):
            parse_scene(data)

    @pytest.mark.parametrize("section, value", [
        ('objects', [5]),
        ('lights', ['sun']),
        ('materials', {'m': 3}),
        ('objects', {'type': 'sphere'}),
        ('camera', [0, 0, 5]),
        ('render', 'fast'),
    ])
    def test_entries_must_have_the_right_shape(self, section, value):
        data = dict(DICT_SCENE)
        data[section] = value
        with pytest.raises(SceneParseError, match="Expected a"):
            parse_scene(data)

    def test_non_finite_numbers_rejected(self):
        data = dict(DICT_SCENE)
        data['objects'] = [{'type': 'sphere', 'radius': float('nan'), 'material': 'mirror'}]
        with pytest.raises(SceneParseError, match="finite"):
            parse_scene(data)

    def test_integral_float_sizes_accepted(self):
        data = dict(DICT_SCENE)
        data['camera'] = dict(DICT_SCENE['camera'], width=32.0, height='24')
        camera = parse_scene(data).camera
        assert (camera.image_width, camera.image_height) == (32, 24)


class TestLoadScene:
    """Test loading scene files from disk."""

    def test_text_file(self, tmp_path):
        path = tmp_path / "spheres.test"
        path.write_text(TEXT_SCENE)
        description = load_scene(path)

        assert isinstance(description, SceneDescription)
        assert len(description.scene) == 2

    def test_json_file(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text(json.dumps(DICT_SCENE))
        assert load_scene(path).max_depth == 4

    def test_yaml_file(self, tmp_path):
        import yaml

        path = tmp_path / "scene.yaml"
        path.write_text(yaml.safe_dump(DICT_SCENE))
        assert len(load_scene(path).scene.lights) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(SceneParseError, match="not found"):
            load_scene(tmp_path / "nope.test")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text("{not json")
        with pytest.raises(SceneParseError, match="Invalid JSON"):
            load_scene(path)

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "scene.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(SceneParseError, match="mapping"):
            load_scene(path)

    def test_parser_collects_objects(self):
        parser = SceneParser()
        parser.parse_text(TEXT_SCENE)
        assert len(parser.objects) == 2
