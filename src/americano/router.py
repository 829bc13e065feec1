from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_session, TournamentORM
from americano.exceptions import ConfigurationError, InvalidScoreError, MatchNotFoundError
from americano.functions import (
    calculate_standings, clear_score, dump_snapshot, generate_americano_rounds,
    generate_summary, load_snapshot, share_url, update_score,
)
from americano.models import Player, TournamentConfig
from americano.schemas import ClearScoreIn, CreateTournamentIn, ScoreIn
from log_utils import setup_logger
from uuid import uuid4

router = APIRouter(prefix='/americano', tags=['Americano'])
logger = setup_logger(__name__)


def generate_id():
    return str(uuid4())[:8]


async def _get_tournament_orm(tid: str, session: AsyncSession) -> TournamentORM:
    result = await session.get(TournamentORM, tid)
    if not result:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return result


async def _commit(session: AsyncSession, tid: str) -> bool:
    """Persist best-effort; in-memory results stay valid if this fails."""
    try:
        await session.commit()
        return True
    except SQLAlchemyError:
        logger.warning("Could not persist tournament %s", tid, exc_info=True)
        await session.rollback()
        return False


def _tournament_payload(tid: str, t_row: TournamentORM) -> dict:
    config, matches = load_snapshot({"config": t_row.config, "matches": t_row.matches})
    standings = calculate_standings(matches, config.players)
    return {
        "id": tid,
        **dump_snapshot(config, matches),
        "standings": [s.to_dict() for s in standings],
    }


# Routes

@router.post("/tournament/create")
async def create_tournament(
    body: CreateTournamentIn,
    session: AsyncSession = Depends(get_session),
):
    players = [
        Player(id=i, name=p.name, position=p.position, pair_id=p.pair_id)
        for i, p in enumerate(body.players, start=1)
    ]
    config = TournamentConfig(
        number_of_players=len(players),
        number_of_rounds=body.number_of_rounds,
        mode=body.mode,
        players=players,
    )
    try:
        matches = generate_americano_rounds(config)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.errors)

    tid = generate_id()
    snapshot = dump_snapshot(config, matches)
    session.add(TournamentORM(
        id=tid, mode=config.mode.value,
        config=snapshot["config"], matches=snapshot["matches"],
    ))
    persisted = await _commit(session, tid)

    return {"id": tid, "persisted": persisted, **snapshot}


@router.head("/tournament/{tid}")
async def tournament_head(tid: str, session: AsyncSession = Depends(get_session)):
    await _get_tournament_orm(tid, session)
    return Response(status_code=200)


@router.get("/tournament/{tid}")
async def tournament_view(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    return _tournament_payload(tid, t_orm)


@router.post("/tournament/{tid}/score")
async def submit_score(
    tid: str,
    body: ScoreIn,
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    _, matches = load_snapshot({"config": t_orm.config, "matches": t_orm.matches})
    try:
        match = update_score(matches, body.match_number, body.score1, body.score2)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidScoreError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # reassign so the JSON column is flagged dirty
    t_orm.matches = [m.to_dict() for m in matches]
    persisted = await _commit(session, tid)
    return {"persisted": persisted, "match": match.to_dict()}


@router.post("/tournament/{tid}/clear-score")
async def remove_score(
    tid: str,
    body: ClearScoreIn,
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    _, matches = load_snapshot({"config": t_orm.config, "matches": t_orm.matches})
    try:
        match = clear_score(matches, body.match_number)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    t_orm.matches = [m.to_dict() for m in matches]
    persisted = await _commit(session, tid)
    return {"persisted": persisted, "match": match.to_dict()}


@router.get("/tournament/{tid}/standings")
async def standings_view(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    return _tournament_payload(tid, t_orm)["standings"]


@router.get("/tournament/{tid}/summary", response_class=PlainTextResponse)
async def summary_view(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    _, matches = load_snapshot({"config": t_orm.config, "matches": t_orm.matches})
    return generate_summary(matches)


@router.get("/tournament/{tid}/share")
async def share_view(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    _, matches = load_snapshot({"config": t_orm.config, "matches": t_orm.matches})
    return {"url": share_url(generate_summary(matches))}


@router.post("/tournament/{tid}/delete")
async def delete_tournament(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await session.get(TournamentORM, tid)
    persisted = True
    if t_orm:
        await session.delete(t_orm)
        persisted = await _commit(session, tid)
    return {"deleted": bool(t_orm), "persisted": persisted}
