# hvs_analyze.py
# Command-line driver: image + sample mask -> quality, materials, particles.

from __future__ import annotations
import argparse
import logging
import sys

from hvs_mineral.core import (
    AnalysisParams,
    AnalysisPipeline,
    HvsAnalysisError,
    ReanalysisOrchestrator,
    RoiDefinition,
    RoiShape,
    default_catalog,
    imread_mask,
    imread_rgb,
)


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="HVS colorimetric mineral analysis (image + sample mask)")
    ap.add_argument("image")
    ap.add_argument("mask", help="binary sample mask, same size as the image (bright = sample)")
    ap.add_argument("--roi-rect", type=int, nargs=4, metavar=("X", "Y", "W", "H"), default=None,
                    help="restrict the sample to a rectangle")
    ap.add_argument("--roi-ellipse", type=int, nargs=4, metavar=("X", "Y", "W", "H"), default=None,
                    help="restrict the sample to the ellipse inscribed in a rectangle")
    ap.add_argument("--roi-invert", action="store_true", help="exclude the ROI instead")
    ap.add_argument("--scale", type=float, default=None, help="µm/px; enables physical particle areas")
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--target", default="Au", help="material id checked for convergence on reanalysis")
    ap.add_argument("--no-reanalysis", action="store_true")
    ap.add_argument("--particles", action="store_true", help="print one line per particle")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    roi = None
    if args.roi_rect:
        roi = RoiDefinition(RoiShape.RECTANGLE, tuple(args.roi_rect), inverted=args.roi_invert)
    elif args.roi_ellipse:
        roi = RoiDefinition(RoiShape.ELLIPSE, tuple(args.roi_ellipse), inverted=args.roi_invert)

    P = AnalysisParams(scale_um_per_px=args.scale, workers=args.workers, target_material=args.target)
    pipeline = AnalysisPipeline(default_catalog(), P)
    runner = pipeline if args.no_reanalysis else ReanalysisOrchestrator(pipeline, P)

    try:
        img = imread_rgb(args.image)
        mask = imread_mask(args.mask)
        res = runner.analyze(img, mask, roi=roi, image_path=args.image)
    except HvsAnalysisError as e:
        print(f"[{e.code}] {e.message}", file=sys.stderr)
        return 2

    print(f"===== {args.image} =====")
    print(res.summary)
    if res.consistency is not None:
        print(res.consistency.format())
    if args.particles:
        for p in res.particles:
            area = f"{p.area_um2:.3f} µm²" if p.area_um2 is not None else f"{p.area_px} px"
            print(f"#{p.idx:4d} {p.material_id or '-':>8s} conf={p.confidence:.2f} area={area}"
                  f" circ={p.circularity:.2f} ar={p.aspect_ratio:.2f}{' mixed' if p.is_mixed else ''}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
