import argparse
import logging
import sys

from paddleocr_decode.det.inference import DetectionModel
from paddleocr_decode.pipeline import OCRPipeline
from paddleocr_decode.rec.inference import RecognitionModel


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run PP-OCR ONNX detection + recognition on an image")
    parser.add_argument("image", help="Path to the input image")
    parser.add_argument("--det-model", default="models/det_model.onnx")
    parser.add_argument("--rec-model", default="models/rec_model.onnx")
    parser.add_argument("--char-dict", default="utils/char_dict.txt")
    parser.add_argument("--target-size", type=int, default=960)
    parser.add_argument("--thresh", type=float, default=0.3)
    parser.add_argument("--box-thresh", type=float, default=0.5)
    parser.add_argument("--unclip-ratio", type=float, default=1.6)
    parser.add_argument("--merge-boxes", action="store_true")
    parser.add_argument("--batch-size", type=int, default=6)
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every decoding step")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    detector = DetectionModel(
        args.det_model,
        target_size=args.target_size,
        thresh=args.thresh,
        box_thresh=args.box_thresh,
        unclip_ratio=args.unclip_ratio,
        merge_boxes=args.merge_boxes,
    )
    recognizer = RecognitionModel(args.rec_model, args.char_dict, batch_size=args.batch_size)
    result = OCRPipeline(detector, recognizer)(args.image)

    print("Final OCR Result (PaddleOCR format):")
    for line in result.to_paddle_format():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
