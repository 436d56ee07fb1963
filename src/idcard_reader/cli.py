"""
Command Line Interface for ID Card Reading
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .libs.yolo_seg import SegmenterConfig
from .models import ModelRegistry
from .pipeline import IDCardPipeline, load_image
from .preview import generate_preview

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idcard-reader",
        description="Locate, rectify and read ID cards in photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Read one photo and print the result
  idcard-reader photo.jpg

  # Read a folder of photos and save JSON results
  idcard-reader photos/*.jpg -o results.json

  # Save side-by-side previews next to the results
  idcard-reader photo.jpg -o results.json --preview-dir previews

  # Only locate and rectify the card
  idcard-reader photo.jpg --no-text
        """
    )

    # Input/Output
    parser.add_argument(
        'inputs',
        nargs='+',
        type=str,
        help='Input image file paths'
    )
    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output JSON file path (default: print to stdout)'
    )
    parser.add_argument(
        '--preview-dir',
        type=str,
        default=None,
        help='Directory for annotated preview PNGs'
    )

    # Model options
    parser.add_argument(
        '--models-dir',
        type=str,
        default=None,
        help='Local models directory (default: $IDCARD_READER_MODELS_DIR)'
    )
    parser.add_argument(
        '--confidence',
        type=float,
        default=0.8,
        help='Card detection score threshold (default: 0.8)'
    )
    parser.add_argument(
        '--no-text',
        action='store_true',
        help='Skip text detection and recognition'
    )
    parser.add_argument(
        '--gpu',
        action='store_true',
        help='Enable CUDA acceleration'
    )
    parser.add_argument(
        '--sequential',
        action='store_true',
        help='Process images one at a time instead of in parallel'
    )

    # Verbosity
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    return parser


def main(argv=None):
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate input files
    input_paths = [Path(p) for p in args.inputs]
    for path in input_paths:
        if not path.is_file():
            print(f"Error: Input file '{path}' not found", file=sys.stderr)
            return 1

    try:
        images = [load_image(path) for path in input_paths]

        pipeline = IDCardPipeline.from_registry(
            ModelRegistry(models_dir=args.models_dir),
            segmenter_config=SegmenterConfig(confidence=args.confidence, use_gpu=args.gpu),
            read_text=not args.no_text,
            use_gpu=args.gpu,
        )

        results = pipeline.process_images(images, parallel=not args.sequential)

        records = []
        for path, image, result in zip(input_paths, images, results):
            print(f"{path.name}: {result.status.value} - {result.message}")
            for item in result.texts:
                print(f"  {item.text}")

            record = {"image": str(path)}
            record.update(result.to_dict())
            records.append(record)

            if args.preview_dir:
                preview_path = Path(args.preview_dir) / f"{path.stem}_preview.png"
                generate_preview(image, result, preview_path)
                logger.info(f"Saved preview to {preview_path}")

        payload = json.dumps(records, indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding='utf-8')
            print(f"Saved to: {args.output}")
        elif args.verbose:
            print(payload)

        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
