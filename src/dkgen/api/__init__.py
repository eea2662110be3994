"""REST API for the dkgen lineup engine."""

from __future__ import annotations

import json
import logging
from typing import Sequence

from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from dkgen.api.schemas import (
    GenerateRequest,
    GenerationStatsResponse,
    LineupBatchResponse,
    LineupPlayerResponse,
    LineupRequest,
    LineupResponse,
    ParseReportResponse,
    RuleResultResponse,
    ValidateRequest,
    ValidationResponse,
)
from dkgen.ingest import ParseReport, parse_projection_text
from dkgen.models import Lineup, PlayerRecord, Slot
from dkgen.optimizer import (
    GenerationConfig,
    GenerationStats,
    GenerationStrategy,
    InsufficientPlayerPool,
    LineupGenerator,
    ScoredLineup,
    ScoringStrategy,
    UnsupportedStrategy,
)
from dkgen.rules import RuleEngine, RuleNotFound, RuleResult, create_draftkings_rule_engine


logger = logging.getLogger(__name__)


def _build_engine(salary_cap: int, max_from_one_team: int | None) -> RuleEngine:
    if max_from_one_team is None:
        return create_draftkings_rule_engine(salary_cap)
    return create_draftkings_rule_engine(salary_cap, max_from_one_team)


def _config_from_request(request: LineupRequest) -> GenerationConfig:
    try:
        strategy = GenerationStrategy(request.strategy)
        scoring = ScoringStrategy(request.scoring_strategy)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if scoring is ScoringStrategy.CUSTOM:
        raise HTTPException(status_code=400, detail="custom scoring is only available in-process")

    overrides = {
        "strategy": strategy,
        "scoring_strategy": scoring,
        "target_lineups": request.lineups,
        "salary_cap": request.salary_cap,
        "allow_duplicates": request.allow_duplicates,
        "sort_results": request.sort_results,
        "prune_salary": request.prune_salary,
    }
    if request.max_attempts is not None:
        overrides["max_attempts"] = request.max_attempts
    if request.timeout_ms is not None:
        overrides["timeout_ms"] = request.timeout_ms
    return GenerationConfig.from_env(**overrides)


def _lineup_response(scored: ScoredLineup, index: int) -> LineupResponse:
    lineup = scored.lineup
    players = [
        LineupPlayerResponse(
            slot=slot.value,
            player_id=player.identifier,
            name=player.name,
            team=player.team,
            position=player.position.value,
            salary=player.salary,
            projection=player.projection,
            ownership=player.ownership,
        )
        for slot, player in lineup.items()
        if player is not None
    ]
    return LineupResponse(
        lineup_id=f"lineup-{index}",
        salary=lineup.total_salary,
        projection=round(lineup.total_projection, 4),
        score=round(scored.primary_score, 4),
        players=players,
    )


def _stats_response(stats: GenerationStats) -> GenerationStatsResponse:
    return GenerationStatsResponse(
        attempts=stats.attempts,
        valid_lineups=stats.valid_lineups,
        invalid_lineups=stats.invalid_lineups,
        rule_failures=stats.rule_failures,
        duplicate_lineups=stats.duplicate_lineups,
        duration_ms=stats.duration_ms,
        timeout_occurred=stats.timeout_occurred,
        stop_reason=stats.stop_reason.value,
    )


def _rule_results(results: Sequence[RuleResult]) -> list[RuleResultResponse]:
    return [
        RuleResultResponse(rule_name=r.rule_name, is_valid=r.is_valid, message=r.message)
        for r in results
    ]


def _run_generation(
    records: Sequence[PlayerRecord],
    request: LineupRequest,
    report: ParseReport | None = None,
) -> LineupBatchResponse:
    config = _config_from_request(request)
    engine = _build_engine(request.salary_cap, request.max_from_one_team)
    try:
        result = LineupGenerator(records, engine, config).generate()
    except InsufficientPlayerPool as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UnsupportedStrategy as exc:
        raise HTTPException(status_code=501, detail=str(exc)) from exc

    message = None
    if not result.scored:
        message = f"No valid lineups found (stopped: {result.stats.stop_reason.value})"
    elif result.stats.timeout_occurred:
        message = "Lineup generation timed out; returning lineups found so far"

    report_payload = None
    if report is not None:
        report_payload = ParseReportResponse(
            total_rows=report.total_rows,
            parsed_rows=report.parsed_rows,
            skipped_rows=report.skipped_rows,
            errors=list(report.errors),
        )

    return LineupBatchResponse(
        lineups=[_lineup_response(scored, idx) for idx, scored in enumerate(result.scored, start=1)],
        stats=_stats_response(result.stats),
        report=report_payload,
        message=message,
    )


def create_app() -> FastAPI:
    app = FastAPI(title="dkgen lineup engine")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/validate", response_model=ValidationResponse)
    async def validate(request: ValidateRequest) -> ValidationResponse:
        assignment: dict[Slot, PlayerRecord] = {}
        for slot_name, index in request.slots.items():
            try:
                slot = Slot(slot_name.upper())
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=f"Unknown slot {slot_name!r}") from exc
            if not 0 <= index < len(request.players):
                raise HTTPException(
                    status_code=400,
                    detail=f"Slot {slot.value} references player index {index} out of range",
                )
            assignment[slot] = request.players[index]

        engine = _build_engine(request.salary_cap, request.max_from_one_team)
        for name in request.disabled_rules:
            try:
                engine.disable_rule(name)
            except RuleNotFound as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc

        lineup = Lineup.from_slots(assignment, check=False)
        result = engine.validate_lineup(lineup)
        return ValidationResponse(
            is_valid=result.is_valid,
            passed=_rule_results(result.passed_rules),
            failed=_rule_results(result.failed_rules),
            warnings=_rule_results(result.warnings),
            total_rules_checked=result.total_rules_checked,
            salary=lineup.total_salary,
            projection=lineup.total_projection,
        )

    @app.post("/lineups", response_model=LineupBatchResponse)
    def build(request: GenerateRequest) -> LineupBatchResponse:
        logger.info("Generating lineups from %d players", len(request.players))
        return _run_generation(request.players, request)

    @app.post("/lineups/upload", response_model=LineupBatchResponse)
    def build_from_upload(
        projections: UploadFile = File(...),
        lineup_request: str = Form("{}"),
    ) -> LineupBatchResponse:
        try:
            request = LineupRequest.model_validate(json.loads(lineup_request or "{}"))
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid lineup_request JSON: {exc}") from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        content = projections.file.read()
        if not content:
            raise HTTPException(status_code=400, detail="projections file is empty")
        try:
            records, report = parse_projection_text(content.decode("utf-8-sig"))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _run_generation(records, request, report)

    return app

