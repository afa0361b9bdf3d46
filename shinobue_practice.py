"""
shinobue_practice.py

Command line entrypoint for the shinobue practice core.

Subcommands
- detect     Synthesize a sine tone, run pitch detection and note classification, print JSON.
- play-demo  Play the built-in demo score against a simulated player and print the result JSON.
- config     Print the resolved configuration.

The demo player is deterministic for a given --seed. It plays every note staccato
(first half of the note length) with a confident, perfectly tuned reading, shifted by a
random onset error of at most --timing-jitter-ms.
"""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
from typing import List, Optional, Sequence

import numpy as np

import config as config_module
from demo_score import create_demo_score
from frequency_math import cent_offset_from_nearest_semitone, frequency_to_midi, frequency_to_note_name
from game_engine import GameEngine
from gameplay_models import GameNote, GameStatus, PitchResult
from note_classifier import NoteClassifier
from note_scheduler import score_to_game_notes
from pitch_detector import PitchDetector
from pitch_feed import LatestPitchReading
from timing_model import ManualClock

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 10.0
SIMULATED_CONFIDENCE = 0.95
ARTICULATION_RATIO = 0.5
MAX_SIMULATED_FRAMES = 100 * 60 * 10


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _synthesize_sine(frequency: float, *, sample_rate: int, sample_count: int, amplitude: float) -> np.ndarray:
    sample_times = np.arange(int(sample_count), dtype=np.float64) / float(sample_rate)
    return (float(amplitude) * np.sin(2.0 * np.pi * float(frequency) * sample_times)).astype(np.float32)


def _run_detect(parsed_args: argparse.Namespace, app_config: config_module.AppConfig) -> int:
    detector = PitchDetector.from_config(app_config.pitch)
    shinobue_key = parsed_args.key or app_config.practice.shinobue_key
    classifier = NoteClassifier(shinobue_key)

    samples = _synthesize_sine(
        parsed_args.frequency,
        sample_rate=detector.sample_rate,
        sample_count=detector.buffer_size,
        amplitude=parsed_args.amplitude,
    )
    pitch_result = detector.detect(samples)

    classified_note = None
    nearest_note = None
    if pitch_result is not None:
        classified_note = classifier.classify(pitch_result.frequency, pitch_result.confidence)
        nearest_note = classifier.find_nearest(pitch_result.frequency)

    _print_json(
        {
            "input_frequency": float(parsed_args.frequency),
            "shinobue_key": classifier.key,
            "pitch": asdict(pitch_result) if pitch_result is not None else None,
            "classified": asdict(classified_note) if classified_note is not None else None,
            "nearest": asdict(nearest_note) if nearest_note is not None else None,
        }
    )
    return 0


def _onset_offsets(game_notes: Sequence[GameNote], jitter_ms: float, seed: Optional[int]) -> List[float]:
    if jitter_ms <= 0.0:
        return [0.0 for _ in game_notes]
    generator = np.random.default_rng(seed)
    return [float(value) for value in generator.uniform(-jitter_ms, jitter_ms, size=len(game_notes))]


def _simulated_reading(
    time_ms: float,
    game_notes: Sequence[GameNote],
    onset_offsets: Sequence[float],
    tuning_a4: float,
) -> Optional[PitchResult]:
    for game_note, onset_offset in zip(game_notes, onset_offsets):
        if game_note.is_rest:
            continue
        onset_ms = float(game_note.time_ms) + onset_offset
        release_ms = onset_ms + float(game_note.duration_ms) * ARTICULATION_RATIO
        if onset_ms <= time_ms < release_ms:
            frequency = float(game_note.frequency)
            return PitchResult(
                frequency=frequency,
                confidence=SIMULATED_CONFIDENCE,
                note_number=frequency_to_midi(frequency, tuning_a4),
                note_name=frequency_to_note_name(frequency, tuning_a4),
                cent_offset=cent_offset_from_nearest_semitone(frequency, tuning_a4),
                timestamp=time_ms,
            )
    return None


def _run_play_demo(parsed_args: argparse.Namespace, app_config: config_module.AppConfig) -> int:
    shinobue_key = parsed_args.key or app_config.practice.shinobue_key
    score = create_demo_score(shinobue_key)
    game_notes = score_to_game_notes(score)
    onset_offsets = _onset_offsets(game_notes, float(parsed_args.timing_jitter_ms), parsed_args.seed)

    clock = ManualClock()
    feed = LatestPitchReading()
    engine = GameEngine(
        score,
        difficulty=parsed_args.difficulty,
        clock=clock,
        game_config=app_config.game,
    )

    engine.start()
    frame_count = 0
    while engine.status is not GameStatus.FINISHED and frame_count < MAX_SIMULATED_FRAMES:
        feed.publish(_simulated_reading(clock.now_ms, game_notes, onset_offsets, app_config.pitch.tuning_a4))
        engine.update_from_feed(feed)
        clock.advance(FRAME_INTERVAL_MS)
        frame_count += 1

    if engine.status is not GameStatus.FINISHED:
        engine.stop()
    logger.debug("Demo simulated %d frames", frame_count)

    result = engine.get_result()
    _print_json(
        {
            "title": score.metadata.title,
            "shinobue_key": shinobue_key,
            "difficulty": engine.difficulty,
            "result": asdict(result),
        }
    )
    return 0


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shinobue-practice", description="Shinobue practice core tools")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect_parser = subparsers.add_parser("detect", help="Detect and classify a synthesized sine tone.")
    detect_parser.add_argument("--frequency", type=float, required=True, help="Tone frequency in Hz.")
    detect_parser.add_argument("--key", default=None, help="Shinobue key: roku, nana, or hachi.")
    detect_parser.add_argument("--amplitude", type=float, default=0.5, help="Sine amplitude (0..1).")

    demo_parser = subparsers.add_parser("play-demo", help="Play the demo score with a simulated player.")
    demo_parser.add_argument("--key", default=None, help="Shinobue key: roku, nana, or hachi.")
    demo_parser.add_argument("--difficulty", default=None, help="beginner, intermediate, advanced, or master.")
    demo_parser.add_argument("--timing-jitter-ms", type=float, default=0.0, help="Maximum onset error in ms.")
    demo_parser.add_argument("--seed", type=int, default=None, help="Random seed for the onset error.")

    subparsers.add_parser("config", help="Print the resolved configuration.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_args.command == "config":
        return config_module.main()

    try:
        app_config, _config_path = config_module.load_config()
    except (OSError, ValueError) as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2

    try:
        if parsed_args.command == "detect":
            return _run_detect(parsed_args, app_config)
        return _run_play_demo(parsed_args, app_config)
    except ValueError as exception:
        _print_json({"ok": False, "error": str(exception)})
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
