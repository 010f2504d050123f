"""
Quadric Edge Collapse Decimation - Command Line Demo
====================================================

Decimates a mesh using Quadric Error Metrics (QEM).

This script:
1. Loads a mesh file (OBJ, or anything trimesh reads) or builds a sample mesh
2. Decimates it to a target face count or ratio
3. Writes the result and prints statistics
4. Optionally computes quality metrics and saves comparison plots
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from qemesh.exceptions import MeshError
from qemesh.evaluation import MeshEvaluator
from qemesh.mesh_decimator import DecimationConfig, MeshDecimator
from qemesh.utils import SAMPLE_MESHES, create_sample_mesh, load_mesh, print_mesh_info, save_mesh
from qemesh.visualization import MeshVisualizer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mesh decimation using Quadric Error Metrics"
    )
    parser.add_argument(
        "--mesh", "-m", type=str, default=None,
        help="Path to input mesh file. If not provided, uses a sample mesh."
    )
    parser.add_argument(
        "--sample", "-s", type=str, default="sphere", choices=SAMPLE_MESHES,
        help="Sample mesh to generate when --mesh is not given (default: sphere)"
    )
    parser.add_argument(
        "--output", "-o", type=str, default="output",
        help="Output directory for results"
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--target-faces", "-t", type=int, default=None,
        help="Target number of faces"
    )
    target.add_argument(
        "--ratio", "-r", type=float, default=None,
        help="Target ratio of faces to keep (default: 0.25)"
    )
    parser.add_argument(
        "--threshold", type=float, default=float("inf"),
        help="Maximum edge length that may be collapsed (default: no limit)"
    )
    parser.add_argument(
        "--safer", action="store_true",
        help="Collapse at most one edge per vertex (single pass)"
    )
    parser.add_argument(
        "--report", action="store_true",
        help="Compute and print quality metrics against the input"
    )
    parser.add_argument(
        "--plot", action="store_true",
        help="Save comparison and error heatmap plots"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv=None) -> int:
    """Main demo entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("QUADRIC EDGE COLLAPSE DECIMATION")
    print("=" * 60)

    try:
        if args.mesh:
            print(f"\nLoading mesh from: {args.mesh}")
            mesh = load_mesh(args.mesh)
        else:
            print(f"\nNo mesh specified, creating sample mesh: {args.sample}")
            mesh = create_sample_mesh(args.sample)
        mesh_name = mesh.name or "mesh"
        print_mesh_info(mesh, mesh_name)
    except (OSError, ValueError) as e:
        print(f"Failed to load mesh: {e}", file=sys.stderr)
        return 1

    ratio = args.ratio if args.ratio is not None else 0.25
    config = DecimationConfig(
        threshold=args.threshold,
        target_face_count=args.target_faces,
        target_ratio=None if args.target_faces is not None else ratio,
        safer_mode=args.safer,
    )
    decimator = MeshDecimator.from_config(config)

    start_time = time.time()
    try:
        simplified = decimator.decimate(
            mesh,
            target_faces=config.target_face_count,
            target_ratio=config.target_ratio,
        )
    except MeshError as e:
        print(f"Decimation failed: {e}", file=sys.stderr)
        return 1
    runtime = time.time() - start_time

    result = decimator.last_result
    print(f"\n  Faces: {mesh.face_count} -> {simplified.face_count} "
          f"({simplified.face_count / max(1, mesh.face_count) * 100:.1f}%)")
    print(f"  Vertices: {mesh.vertex_count} -> {simplified.vertex_count}")
    print(f"  Collapses: {result.collapses} in {result.passes} pass(es), "
          f"{result.attempts} attempts")
    if result.rejections:
        rejected = ", ".join(f"{k}={v}" for k, v in sorted(result.rejections.items()))
        print(f"  Rejected: {rejected}")
    if not result.reached_target:
        print(f"  Target of {result.target_face_count} faces not reached")
    print(f"  Runtime: {runtime:.3f}s")

    output_path = output_dir / f"{mesh_name}_decimated.obj"
    save_mesh(simplified, output_path)
    print(f"Saved: {output_path}")

    if args.report:
        metrics = MeshEvaluator().compute_all_metrics(mesh, simplified)
        metrics['runtime'] = runtime
        print("\n" + MeshEvaluator().generate_report(metrics, f"QEM ({mesh_name})"))

    if args.plot:
        visualizer = MeshVisualizer()
        fig = visualizer.plot_mesh_comparison(
            mesh, simplified,
            title=f"{mesh_name} - Original vs Decimated",
            save_path=str(output_dir / f"{mesh_name}_comparison.png")
        )
        plt.close(fig)

        errors = decimator.get_vertex_errors(simplified)
        fig = visualizer.plot_error_heatmap(
            simplified, errors,
            title=f"{mesh_name} - Quadric Error Heatmap",
            save_path=str(output_dir / f"{mesh_name}_error_heatmap.png")
        )
        plt.close(fig)

    print("\n" + "=" * 60)
    print("DONE")
    print(f"Results saved to: {output_dir.absolute()}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
