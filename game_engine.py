# -*- coding: utf-8 -*-
########################
# game_engine.py
########################
# Purpose:
# - Rhythm game session orchestrator.
# - Plays a Score's timeline against the session clock and a live pitch reading,
#   judging notes with TimingJudge and feeding ComboManager / ScoreCalculator.
#
# Design notes:
# - Single-threaded and cooperative. update() is called once per rendering frame and is the
#   only writer of notes, combo, score and status.
# - Both pull and push integration: update() returns the GameState snapshot, and optional
#   callbacks fire for judgements, every state change and the final result.
# - At most one note is judged from live pitch per frame. Forced misses are not limited.
# - Rests and notes outside the difficulty's allowed registers are marked judged with no
#   score or combo effect as soon as they enter the judgement window.
# - No I/O and no domain exceptions during frames. An empty timeline finishes on the first frame.
#
########################
# Interfaces:
# Public dataclasses:
# - GameEngineCallbacks(on_judgement, on_state_change, on_finish)
#
# Public classes:
# - class GameEngine
#   - __init__(score: Score, difficulty: Optional[str] = None, callbacks: Optional[GameEngineCallbacks] = None,
#              clock: Optional[Callable[[], float]] = None, game_config: Optional[GameConfig] = None)
#   - status -> GameStatus
#   - current_time_ms -> float
#   - game_notes -> list[GameNote]
#   - config -> DifficultyConfig
#   - difficulty -> str
#   - total_playable_notes -> int
#   - start() -> None
#   - pause() -> None
#   - resume() -> None
#   - stop() -> None
#   - update(pitch_result: Optional[PitchResult]) -> GameState
#   - update_from_feed(feed: LatestPitchReading) -> GameState
#   - get_state() -> GameState
#   - get_result() -> GameResult
#   - visible_notes(*, lookback_ms: float, lookahead_ms: float) -> list[GameNote]
#
# Inputs:
# - Score (once, at construction), per-frame PitchResult or None.
#
# Outputs:
# - GameState per frame, GameResult when the session finishes.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable, List, Optional

from config import GameConfig
from frequency_math import cents_between
from gameplay_models import (
    DIFFICULTY_CONFIGS,
    DifficultyConfig,
    GameNote,
    GameResult,
    GameState,
    GameStatus,
    JudgementResult,
    JudgementType,
    PitchResult,
    normalize_difficulty,
)
from note_scheduler import NoteScheduler
from pitch_feed import LatestPitchReading
from score_models import Score
from scoring import ComboManager, ScoreCalculator
from timing_judge import TimingJudge
from timing_model import TimingModel

logger = logging.getLogger(__name__)


@dataclass
class GameEngineCallbacks:
    # (judgement, total score, current combo)
    on_judgement: Optional[Callable[[JudgementResult, int, int], None]] = None
    on_state_change: Optional[Callable[[GameState], None]] = None
    on_finish: Optional[Callable[[GameResult], None]] = None


class GameEngine:
    def __init__(
        self,
        score: Score,
        difficulty: Optional[str] = None,
        callbacks: Optional[GameEngineCallbacks] = None,
        clock: Optional[Callable[[], float]] = None,
        game_config: Optional[GameConfig] = None,
    ) -> None:
        self._game_config = game_config if game_config is not None else GameConfig()
        self._difficulty = normalize_difficulty(difficulty if difficulty is not None else self._game_config.difficulty)
        self._difficulty_config = DIFFICULTY_CONFIGS[self._difficulty]
        self._judge = TimingJudge(self._difficulty_config)
        self._callbacks = callbacks if callbacks is not None else GameEngineCallbacks()

        self._scheduler = NoteScheduler.from_score(score)
        self._score_calculator = ScoreCalculator()
        self._combo = ComboManager()
        self._timing = TimingModel(clock, av_offset_ms=float(self._game_config.av_offset_ms))

        self._status = GameStatus.IDLE
        self._current_time_ms = 0.0
        self._result: Optional[GameResult] = None

        logger.debug(
            "GameEngine created: %d notes, difficulty=%s, judgement window=%.1f ms",
            len(self._scheduler.notes()),
            self._difficulty,
            self._judge.get_max_window(),
        )

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def current_time_ms(self) -> float:
        return self._current_time_ms

    @property
    def game_notes(self) -> List[GameNote]:
        return self._scheduler.notes()

    @property
    def config(self) -> DifficultyConfig:
        return self._difficulty_config

    @property
    def difficulty(self) -> str:
        return self._difficulty

    @property
    def judge(self) -> TimingJudge:
        return self._judge

    @property
    def total_playable_notes(self) -> int:
        return sum(1 for game_note in self._scheduler.notes() if self._is_playable(game_note))

    def start(self) -> None:
        self._score_calculator.reset()
        self._combo.reset()
        self._scheduler.reset()
        self._result = None
        self._timing.start()
        self._current_time_ms = 0.0
        self._status = GameStatus.PLAYING
        logger.info("Game started: %d playable notes (%s)", self.total_playable_notes, self._difficulty)
        self._emit_state()

    def pause(self) -> None:
        if self._status is not GameStatus.PLAYING:
            return
        self._timing.pause()
        self._status = GameStatus.PAUSED
        logger.debug("Game paused at %.1f ms", self._current_time_ms)
        self._emit_state()

    def resume(self) -> None:
        if self._status is not GameStatus.PAUSED:
            return
        self._timing.resume()
        self._status = GameStatus.PLAYING
        logger.debug("Game resumed at %.1f ms", self._timing.elapsed_ms())
        self._emit_state()

    def stop(self) -> None:
        """Finish immediately. Remaining notes stay unjudged."""
        self._status = GameStatus.FINISHED
        logger.info("Game stopped at %.1f ms", self._current_time_ms)
        self._emit_state()

    def update(self, pitch_result: Optional[PitchResult]) -> GameState:
        if self._status is not GameStatus.PLAYING:
            return self.get_state()

        self._current_time_ms = self._timing.elapsed_ms()

        last_note_end_ms = self._scheduler.last_note_end_ms()
        if last_note_end_ms is None:
            self._finish()
            return self.get_state()

        self._scan_notes(pitch_result)

        if self._current_time_ms > last_note_end_ms + float(self._game_config.end_grace_ms):
            self._finish()
            return self.get_state()

        self._emit_state()
        return self.get_state()

    def update_from_feed(self, feed: LatestPitchReading) -> GameState:
        return self.update(feed.latest())

    def _scan_notes(self, pitch_result: Optional[PitchResult]) -> None:
        max_window_ms = self._judge.get_max_window()
        now_ms = self._current_time_ms

        for index, game_note in self._scheduler.unjudged_from_cursor():
            timing_delta = now_ms - float(game_note.time_ms)

            if timing_delta < -max_window_ms:
                break

            if game_note.is_rest or not self._difficulty_config.allows(game_note.register):
                self._scheduler.mark_judged(game_note, None)
                self._scheduler.advance_cursor(index + 1)
                continue

            if self._judge.is_past_judgement_window(timing_delta):
                self._apply_judgement(
                    game_note,
                    JudgementResult(
                        type=JudgementType.MISS,
                        timing_delta=timing_delta,
                        pitch_delta=0.0,
                        note_id=game_note.id,
                    ),
                )
                self._scheduler.advance_cursor(index + 1)
                continue

            if (
                pitch_result is not None
                and float(pitch_result.confidence) >= float(self._game_config.judge_confidence)
                and self._judge.is_in_judgement_window(timing_delta)
            ):
                pitch_delta = cents_between(float(pitch_result.frequency), float(game_note.frequency))
                if not math.isfinite(pitch_delta):
                    break
                judgement = self._judge.judge(timing_delta, pitch_delta, game_note.id)
                self._apply_judgement(game_note, judgement)
                self._scheduler.advance_cursor(index + 1)
                break

    def _finish(self) -> None:
        if self._status is GameStatus.FINISHED:
            return

        for game_note in self._scheduler.notes():
            if game_note.judged or game_note.is_rest:
                continue
            if not self._difficulty_config.allows(game_note.register):
                self._scheduler.mark_judged(game_note, None)
                continue
            self._apply_judgement(
                game_note,
                JudgementResult(
                    type=JudgementType.MISS,
                    timing_delta=math.inf,
                    pitch_delta=0.0,
                    note_id=game_note.id,
                ),
            )

        self._status = GameStatus.FINISHED
        self._result = self._score_calculator.get_result(self._combo.max_combo, self.total_playable_notes)
        logger.info(
            "Game finished: score=%d accuracy=%.1f%% rank=%s max_combo=%d",
            self._result.score,
            self._result.accuracy,
            self._result.rank,
            self._result.max_combo,
        )
        if self._callbacks.on_finish is not None:
            self._callbacks.on_finish(self._result)
        self._emit_state()

    def _apply_judgement(self, game_note: GameNote, judgement: JudgementResult) -> None:
        self._scheduler.mark_judged(game_note, judgement)
        self._combo.register(judgement.type)
        self._score_calculator.add(judgement, self._combo.multiplier)
        if self._callbacks.on_judgement is not None:
            self._callbacks.on_judgement(judgement, self._score_calculator.score, self._combo.combo)

    def _is_playable(self, game_note: GameNote) -> bool:
        return not game_note.is_rest and self._difficulty_config.allows(game_note.register)

    def get_state(self) -> GameState:
        notes = self._scheduler.notes()
        return GameState(
            status=self._status,
            current_time_ms=self._current_time_ms,
            score=self._score_calculator.score,
            combo=self._combo.combo,
            max_combo=self._combo.max_combo,
            notes=notes,
            judgements=[game_note.judgement for game_note in notes if game_note.judgement is not None],
            next_note_index=self._scheduler.cursor,
        )

    def get_result(self) -> GameResult:
        if self._result is not None:
            return self._result
        return self._score_calculator.get_result(self._combo.max_combo, self.total_playable_notes)

    def visible_notes(self, *, lookback_ms: float, lookahead_ms: float) -> List[GameNote]:
        return self._scheduler.visible_notes(
            time_ms=self._current_time_ms,
            lookback_ms=lookback_ms,
            lookahead_ms=lookahead_ms,
        )

    def _emit_state(self) -> None:
        if self._callbacks.on_state_change is not None:
            self._callbacks.on_state_change(self.get_state())
