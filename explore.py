import os
import sys
import time
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np

# Imports for output
import PIL.Image
import imageio

from mandelview import (
    DEFAULT_VIEWPORT,
    InvalidGeometryError,
    RenderResult,
    RenderSettings,
    Viewport,
    ZoomPlanner,
    compute_zoom_factors,
    escape_statistics,
    get_color_policy,
    render,
)
from mandelview.coloring import COLOR_POLICIES
from mandelview.renderer import BACKENDS

VALID_MODES = ("image", "gif", "frames")


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description="Render and zoom into the Mandelbrot set.")

    parser.add_argument('--left', type=float, default=DEFAULT_VIEWPORT.left,
                        help='left bound of the viewport in the complex plane', metavar='LEFT')
    parser.add_argument('--right', type=float, default=DEFAULT_VIEWPORT.right,
                        help='right bound of the viewport in the complex plane', metavar='RIGHT')
    parser.add_argument('--top', type=float, default=DEFAULT_VIEWPORT.top,
                        help='top (largest imaginary) bound of the viewport', metavar='TOP')
    parser.add_argument('--bottom', type=float, default=DEFAULT_VIEWPORT.bottom,
                        help='bottom (smallest imaginary) bound of the viewport', metavar='BOTTOM')

    parser.add_argument('--lock-aspect', action='store_true',
                        help='Re-derive the viewport height from the pixel aspect ratio to avoid stretching.')

    parser.add_argument('--width', type=int, default=800,
                        help='width of the rendered image in pixels', metavar='WIDTH')
    parser.add_argument('--height', type=int, default=None,
                        help='height of the rendered image in pixels. Default: width divided by the viewport aspect ratio.',
                        metavar='HEIGHT')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', default=200,
                        help='maximum number of iterations before a point is considered bounded',
                        metavar='MAX_ITERATIONS')
    parser.add_argument('--escape-magnitude', type=float, dest='escape_magnitude', default=1000.0,
                        help='magnitude beyond which an orbit has escaped', metavar='ESCAPE_MAGNITUDE')

    parser.add_argument('--color-policy', dest='color_policy', choices=sorted(COLOR_POLICIES), default='banded',
                        help='how escape iterations are mapped to colours')
    parser.add_argument('--colormap', type=str, default='twilight_shifted',
                        help='matplotlib colormap used by the colormap policy (e.g. "viridis", "inferno")',
                        metavar='COLORMAP')
    parser.add_argument('--invert', action='store_true', help='Invert the selected colormap.')

    parser.add_argument('--backend', choices=BACKENDS, default='python',
                        help='"python" evaluates pixel by pixel, "tensorflow" evaluates the whole grid at once')
    parser.add_argument('--workers', type=int, default=1,
                        help='number of threads sharing the rows of the python backend; the pure-Python '
                             'loop holds the GIL, so this does not speed up rendering', metavar='WORKERS')

    parser.add_argument('--frames', type=int, default=1,
                        help='number of frames to generate; more than one produces a zoom sequence',
                        metavar='FRAMES')
    parser.add_argument('--zoom-factor', type=float, dest='zoom_factor', default=2.0,
                        help='zoom applied between frames. Choose > 1 to zoom in, < 1 to zoom out',
                        metavar='ZOOM_FACTOR')
    parser.add_argument('--final-zoom', type=float, default=None,
                        help='Overall zoom reached by the last frame (e.g., 1e4). If set, overrides --zoom-factor.')
    parser.add_argument('--easing', choices=('linear', 'ease'), default='ease',
                        help='Temporal curve used with --final-zoom: "linear" or "ease" for smooth ease-in-out.')
    parser.add_argument('--focus', type=float, nargs=2, default=None, metavar=('RE', 'IM'),
                        help='complex point to zoom towards. Default: the set boundary nearest the image centre.')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: image, gif, frames.')
    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')
    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the frame sequence.')
    parser.add_argument('--format', type=str, dest='format', default='png',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT')
    parser.add_argument('--show-edges', help='render the set boundary beside each frame',
                        dest='show_edges', action="store_true")

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics and escape statistics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = list(opt.modes or [])
    if not modes:
        modes = ["gif"] if opt.frames > 1 else ["image"]

    normalized_modes: list[str] = []
    for mode in modes:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(VALID_MODES))}.")
        if mode not in normalized_modes:
            normalized_modes.append(mode)
    modes_tuple = tuple(normalized_modes)

    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    frame_dir_path: Path | None = None
    if "frames" in modes_tuple:
        frame_dir_path = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if opt.output:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if opt.output:
            output_path = Path(opt.output).expanduser()
            if opt.output.endswith(("/", os.sep)) or output_path.is_dir():
                parser.error("--output must be a file path when a single file-based mode is selected.")
            if mode == "gif":
                if output_path.suffix and output_path.suffix.lower() != ".gif":
                    parser.error("GIF outputs must end with .gif.")
                gif_path = output_path.with_suffix(".gif").resolve()
            else:
                expected_suffix = f".{image_format}"
                if output_path.suffix and output_path.suffix.lower() != expected_suffix:
                    parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
                image_path = output_path.with_suffix(expected_suffix).resolve()
        elif mode == "gif":
            gif_path = Path("mandelbrot.gif").resolve()
        else:
            image_path = Path(f"mandelbrot.{image_format}").resolve()
    else:
        base_dir = Path(opt.output).expanduser() if opt.output else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "mandelbrot.gif").resolve()
        image_path = (base_dir / f"mandelbrot.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
    )


def resolve_viewport(opt, parser: ArgumentParser) -> tuple[Viewport, int, int]:
    """Build the initial viewport and the pixel size from the parsed options."""

    try:
        viewport = Viewport(top=opt.top, bottom=opt.bottom, left=opt.left, right=opt.right)
    except InvalidGeometryError as exc:
        parser.error(str(exc))

    width = opt.width
    height = opt.height if opt.height is not None else int(width / viewport.aspect_ratio)
    if width <= 0 or height <= 0:
        parser.error(f"image size must be positive, got {width}x{height}.")

    if opt.lock_aspect:
        viewport = viewport.with_aspect(width / height)
    return viewport, width, height


def resolve_settings(opt, parser: ArgumentParser) -> RenderSettings:
    options: dict[str, Any] = {}
    if opt.color_policy == "colormap":
        options = {"colormap": opt.colormap, "invert": opt.invert}
    try:
        policy = get_color_policy(opt.color_policy, **options)
        return RenderSettings(
            max_iterations=opt.max_iterations,
            escape_magnitude=opt.escape_magnitude,
            color_policy=policy,
        )
    except ValueError as exc:
        parser.error(str(exc))


def _quiet_tensorflow() -> None:
    import tensorflow as tf

    log("TensorFlow version: %s" % tf.__version__)
    if _suppress_messages:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"frame{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=_pil_format_name(image_format))
    return frame_path


def frame_array(result: RenderResult, show_edges: bool) -> np.ndarray:
    if not show_edges:
        return result.pixels
    edges_rgb = np.uint8(np.stack((result.edges,) * 3, axis=-1) * 255)
    return np.concatenate((result.pixels, edges_rgb), axis=1)


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int

    def __post_init__(self) -> None:
        self._gif_writer = None
        if self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.1, loop=0)

    def write_frame(self, frame_index: int, pixels: np.ndarray) -> None:
        if self._gif_writer is not None:
            self._gif_writer.append_data(pixels)
        if self.config.frame_dir is not None:
            write_frame_sequence(
                PIL.Image.fromarray(pixels),
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self, final_pixels: np.ndarray | None) -> None:
        if self.config.image_path is not None and final_pixels is not None:
            write_single_image(PIL.Image.fromarray(final_pixels), self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.frames < 1:
        parser.error("--frames must be at least 1.")
    if opt.workers < 1:
        parser.error("--workers must be at least 1.")
    if opt.final_zoom is None and opt.zoom_factor <= 0:
        parser.error("--zoom-factor must be positive.")

    output_config = resolve_output_config(opt, parser)
    viewport, width, height = resolve_viewport(opt, parser)
    settings = resolve_settings(opt, parser)

    if opt.backend == "tensorflow":
        _quiet_tensorflow()

    planner = ZoomPlanner(focus=tuple(opt.focus) if opt.focus else None)
    per_frame_factors = compute_zoom_factors(
        opt.frames - 1,
        opt.zoom_factor,
        final_zoom=opt.final_zoom,
        easing=opt.easing,
    )

    log(f"image: {width}x{height}, backend: {opt.backend}, policy: {opt.color_policy}")
    log(f"max iterations: {settings.max_iterations}, escape magnitude: {settings.escape_magnitude}")

    writers = OutputWriters(output_config, frame_digits=max(3, len(str(opt.frames - 1))))
    final_pixels = None
    try:
        for i in range(opt.frames):
            print("frame {0} out of {1}".format(i, opt.frames), end='\r')
            log(f"\nbounds {viewport}")
            started = time.perf_counter()
            result = render(width, height, viewport, settings, workers=opt.workers, backend=opt.backend)
            log(f"rendered in {time.perf_counter() - started:.3f}s")
            if VERBOSE:
                stats = escape_statistics(result.iterations, settings.max_iterations)
                log(f"num unique escape indices: {stats.unique_escape_indices}")
                log(f"escape range: {stats.min_escape} - {stats.max_escape}, bounded pixels: {stats.bounded}")

            final_pixels = frame_array(result, opt.show_edges)
            writers.write_frame(i, final_pixels)

            if i < opt.frames - 1:
                viewport = planner.next_viewport(result, float(per_frame_factors[i]))
    finally:
        writers.close()

    print()
    writers.finalize(final_pixels)
    return 0


if __name__ == '__main__':
    main()
