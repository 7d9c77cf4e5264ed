#!/usr/bin/env python3
"""
phongray - A Python Ray Tracer

Main entry point for rendering scene files.
"""

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

from phongray.vec3 import Vec3, Color, Point3
from phongray.camera import Camera
from phongray.materials import Material
from phongray.shapes import Sphere, Triangle
from phongray.lights import Light
from phongray.scene import Scene
from phongray.renderer import Renderer, RenderSettings
from phongray.scene_parser import SceneDescription, SceneParseError, load_scene

logger = logging.getLogger("phongray")

# Scene files named at the prompt are looked up here.
SCENE_DIRECTORY = Path("scenes")


def create_demo_scene(width: int = 640, height: int = 480) -> SceneDescription:
    """Create a demo scene: a red and a chrome sphere on a matte floor."""
    red = Material(
        ambient=Color(0.2, 0.0, 0.0),
        diffuse=Color(0.8, 0.1, 0.1),
        specular=Color(1.0, 1.0, 1.0),
        shininess=32
    )
    chrome = Material(
        ambient=Color(0.05, 0.05, 0.05),
        diffuse=Color(0.2, 0.2, 0.2),
        specular=Color(1.0, 1.0, 1.0),
        shininess=100
    )
    floor = Material.matte(Color(0.6, 0.6, 0.6))

    objects = [
        Sphere(Point3(-1.2, 0, -4), 1.0, red),
        Sphere(Point3(1.2, 0, -5), 1.0, chrome),
        # Floor quad, two front-facing triangles
        Triangle(Point3(-10, -1, 10), Point3(10, -1, 10), Point3(10, -1, -20), floor),
        Triangle(Point3(-10, -1, 10), Point3(10, -1, -20), Point3(-10, -1, -20), floor),
    ]
    lights = [
        Light.point(Point3(5, 5, 0), Color(0.2, 0.2, 0.2), Color(1, 1, 1), Color(1, 1, 1),
                    constant=1.0, linear=0.01, quadratic=0.001),
        Light.directional(Vec3(-1, -1, -1), Color(0.1, 0.1, 0.1), Color(0.3, 0.3, 0.3),
                          Color(0.3, 0.3, 0.3)),
    ]
    camera = Camera(
        position=Point3(0, 0.5, 2),
        look_target=Point3(0, 0, -4),
        global_up=Vec3(0, 1, 0),
        fov_y=45,
        focal_length=1.0,
        image_width=width,
        image_height=height
    )
    return SceneDescription(scene=Scene(objects, lights), camera=camera, max_depth=3)


def prompt_scene_path() -> Path:
    """Ask for a scene file name inside the scene directory."""
    filename = input(f"Enter filename inside ./{SCENE_DIRECTORY} directory: ").strip()
    return SCENE_DIRECTORY / filename


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='phongray - A Python Ray Tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene scenes/spheres.test --output scene.png
  python main.py --scene scenes/mirror.yaml --samples 64 --threads 8
  python main.py --scene demo --no-antialias --depth 1
        '''
    )

    parser.add_argument('--scene', type=str, default=None,
                        help="Scene file, or 'demo' for the built-in scene (prompts if omitted)")
    parser.add_argument('--output', type=str, default='scene.png', help='Output filename (default: scene.png)')
    parser.add_argument('--samples', type=int, default=None, help='Samples per pixel when anti-aliasing')
    parser.add_argument('--no-antialias', action='store_true', help='Trace one ray through each pixel center')
    parser.add_argument('--depth', type=int, default=None, help='Max recursion depth (overrides the scene)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for reproducible jitter sampling')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Load scene
    if args.scene == 'demo':
        description = create_demo_scene()
    else:
        scene_path = Path(args.scene) if args.scene else prompt_scene_path()
        try:
            description = load_scene(scene_path)
        except SceneParseError as exc:
            logger.error("%s", exc)
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    # Create render settings
    overrides = {'num_threads': args.threads}
    if args.samples is not None:
        overrides['samples_per_pixel'] = args.samples
    if args.no_antialias:
        overrides['antialias'] = False
    if args.seed is not None:
        overrides['seed'] = args.seed

    try:
        settings = dataclasses.replace(description.apply(RenderSettings()), **overrides)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    max_depth = args.depth if args.depth is not None else description.max_depth
    camera = description.camera
    scene = description.scene

    # Print header
    print("=" * 60)
    print("phongray Ray Tracer")
    print("=" * 60)
    print(f"\nRender Settings:")
    print(f"  Resolution: {camera.image_width}x{camera.image_height}")
    print(f"  Anti-aliasing: {'%d samples' % settings.samples_per_pixel if settings.antialias else 'off'}")
    print(f"  Max Depth: {max_depth}")
    print(f"  Threads: {settings.worker_count}")
    print(f"  Objects in scene: {len(scene)}")
    print(f"  Lights in scene: {len(scene.lights)}")

    renderer = Renderer(settings)

    def progress_callback(rows_done: int, total_rows: int):
        print(f"\rRow: {rows_done:4d} / {total_rows:4d}", end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    # Render
    print("\nRendering...")
    start_time = time.time()

    framebuffer = renderer.render(scene, camera, max_depth)

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")

    print(f"\nSaving to: {args.output}")
    framebuffer.save(args.output)

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
