import argparse
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

import cv2
import numpy as np
from tqdm import tqdm

from liptint.compositor import apply_lipstick
from liptint.config import load_and_merge, resolve_color
from liptint.facemesh import FaceMeshConfig, FaceMeshDetector
from liptint.loader import ImageLoader, bgr_to_buffer, buffer_to_bgr, write_image
from liptint.mask import mask_to_array
from liptint.utils import mirror_path, setup_logging
from liptint.writers import ResultsWriter, build_record

logger = logging.getLogger("liptint.main")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Virtual lipstick compositing pipeline")
    # Single-image mode
    p.add_argument("--image", help="Path to a single image (PNG/JPG)")
    p.add_argument("--output", help="Where to write the tinted image (single-image mode)")
    p.add_argument("--save-debug", default=None, help="Optional path to save a mask outline overlay (single-image mode)")
    # Batch mode
    p.add_argument("--input-dir", help="Directory of images to process (batch mode)")
    p.add_argument("--output-dir", help="Directory to write tinted images and results")
    p.add_argument("--max-files", type=int, default=None, help="Optional max files to process (for testing)")
    p.add_argument("--workers", type=int, default=None, help="Number of worker processes (0=single-thread)")
    # Lipstick
    p.add_argument("--color", default=None, help="Lipstick color as #RRGGBB")
    p.add_argument("--shade", default=None, help="Named shade from the config's shades table")
    p.add_argument("--opacity", type=float, default=None, help="Blend opacity in [0, 1]")
    # Config
    p.add_argument("--config", default=None, help="Optional YAML config path")
    p.add_argument("--log-level", default=None, help="Override log level (e.g., INFO, DEBUG)")
    return p.parse_args()


def draw_debug(image_bgr, mask, out_path: str):
    vis = image_bgr.copy()
    if vis.ndim == 2:
        vis = cv2.cvtColor(vis, cv2.COLOR_GRAY2BGR)
    elif vis.shape[2] == 4:
        vis = cv2.cvtColor(vis, cv2.COLOR_BGRA2BGR)
    # Shade the pixels the compositor would touch, then outline the mask
    inside = mask_to_array(mask, vis.shape[1], vis.shape[0])
    vis[inside] = (vis[inside] * 0.5 + np.array([0, 255, 0]) * 0.5).astype(vis.dtype)
    if mask is not None and mask.kind == "polygon":
        for ring in (mask.upper, mask.lower):
            pts = [[int(round(p.x)), int(round(p.y))] for p in ring]
            cv2.polylines(vis, [np.asarray(pts, dtype=np.int32)], True, (0, 255, 0), 1)
    elif mask is not None and mask.kind == "ellipse":
        center = (int(round(mask.center.x)), int(round(mask.center.y)))
        axes = (int(round(mask.radius_x)), int(round(mask.radius_y)))
        cv2.ellipse(vis, center, axes, 0, 0, 360, (0, 0, 255), 1)
    write_image(out_path, vis)


def process_image(image_bgr, detector: FaceMeshDetector, color: str, opacity: float, cfg: dict):
    """Detect, tint, and return (tinted_bgr, FrameResult)."""
    face = detector.detect(image_bgr)
    buffer = bgr_to_buffer(image_bgr)
    result = apply_lipstick(buffer, face, color, opacity, cfg)
    keep_alpha = image_bgr.ndim == 3 and image_bgr.shape[2] == 4
    return buffer_to_bgr(result.buffer, keep_alpha=keep_alpha), result, face


def process_one_path(path_str: str, cfg: dict, color: str, opacity: float) -> dict:
    # Local imports to ensure picklability in multiprocessing environments
    from liptint.types import ImageMeta as IMeta

    paths = cfg.get("paths", {})
    loader = ImageLoader(input_dir=Path(path_str).parent)
    img, meta, err = loader.read_image(path_str)
    if err or img is None or meta is None:
        meta_fallback = meta if meta is not None else IMeta(path=str(path_str), width=0, height=0)
        return build_record(meta_fallback, None, color, opacity, reason=err or "unreadable")

    try:
        with FaceMeshDetector(FaceMeshConfig.from_cfg(cfg)) as det:
            tinted, result, face = process_image(img, det, color, opacity, cfg)
    except ValueError as e:
        logger.warning("Skipping %s: %s", path_str, e)
        return build_record(meta, None, color, opacity, reason="unsupported")
    if face is None:
        return build_record(meta, result, color, opacity, reason="no_face")

    out_path = mirror_path(path_str, paths.get("input_dir"), paths["output_dir"])
    write_image(out_path, tinted)
    reason = None if result.tinted else "no_lips"
    return build_record(meta, result, color, opacity, output=str(out_path), reason=reason)


def main():
    # Reduce TF/MediaPipe verbosity if desired
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

    args = parse_args()

    # Build CLI overrides for config merging
    cli_overrides = {"paths": {}, "runtime": {}, "lipstick": {}}
    if args.input_dir:
        cli_overrides["paths"]["input_dir"] = args.input_dir
    if args.output_dir:
        cli_overrides["paths"]["output_dir"] = args.output_dir
    if args.max_files is not None:
        cli_overrides["runtime"]["max_files"] = args.max_files
    if args.workers is not None:
        cli_overrides["runtime"]["workers"] = args.workers
    if args.log_level:
        cli_overrides["runtime"]["log_level"] = args.log_level
    if args.color:
        cli_overrides["lipstick"]["color"] = args.color
    if args.opacity is not None:
        cli_overrides["lipstick"]["opacity"] = args.opacity

    try:
        cfg = load_and_merge(args.config, cli_overrides)
        color = resolve_color(cfg, args.shade)
    except (ValueError, KeyError) as e:
        raise SystemExit(f"Invalid configuration: {e}")

    setup_logging(cfg.get("runtime", {}).get("log_level", "INFO"))
    opacity = float(cfg["lipstick"]["opacity"])

    # Single-image mode
    if args.image and not args.input_dir:
        if not args.output:
            raise SystemExit("Single-image mode requires --output")
        loader = ImageLoader(input_dir=Path(args.image).parent)
        image, meta, err = loader.read_image(args.image)
        if err or image is None or meta is None:
            raise SystemExit(f"Failed to read image: {args.image} ({err})")

        try:
            with FaceMeshDetector(FaceMeshConfig.from_cfg(cfg)) as det:
                tinted, result, face = process_image(image, det, color, opacity, cfg)
        except ValueError as e:
            raise SystemExit(f"Unsupported image: {args.image} ({e})")
        if face is None:
            print("No face detected")
            return

        write_image(args.output, tinted)
        print("Mask:", result.mask.kind if result.mask is not None else "-", "via", result.strategy)
        print("Tinted pixels:", result.tinted, "color:", color, "opacity:", opacity)
        print("Saved:", args.output)

        if args.save_debug:
            out_path = str(args.save_debug)
            draw_debug(image, result.mask, out_path)
            print("Saved debug overlay:", out_path)
        return

    # Batch mode
    input_dir = cfg.get("paths", {}).get("input_dir")
    output_dir = cfg.get("paths", {}).get("output_dir")
    if not input_dir or not output_dir:
        raise SystemExit("Batch mode requires --input-dir and --output-dir (or set in config)")

    loader = ImageLoader(input_dir=input_dir, max_files=cfg.get("runtime", {}).get("max_files"))
    paths = list(loader.enumerate())
    if not paths:
        print("No images found in", input_dir)
        return

    writer = ResultsWriter(output_dir, cfg)

    workers = int(cfg.get("runtime", {}).get("workers", 0) or 0)
    if workers <= 0:
        for p in tqdm(paths, desc="Tinting", unit="img"):
            try:
                writer.add(process_one_path(str(p), cfg, color, opacity))
            except Exception as e:
                logger.error("Failed on %s: %s", p, e)
    else:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            futures = {ex.submit(process_one_path, str(p), cfg, color, opacity): p for p in paths}
            for fut in tqdm(as_completed(futures), total=len(futures), desc="Tinting", unit="img"):
                try:
                    writer.add(fut.result())
                except Exception as e:
                    logger.error("Worker failed on %s: %s", futures[fut], e)

    summary = writer.finalize()
    print("Summary:", summary["counts"])


if __name__ == "__main__":
    main()
