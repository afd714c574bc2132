from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session, select

from stackmod_manager.database import get_session
from stackmod_manager.models.game import Game
from stackmod_manager.routers.deps import get_game_or_404
from stackmod_manager.schemas.game import GameCreate, GameOut

router = APIRouter(prefix="/games", tags=["games"])


@router.get("/", response_model=list[GameOut])
def list_games(session: Session = Depends(get_session)) -> list[Game]:
    return list(session.exec(select(Game).order_by(Game.name)).all())


@router.post("/", response_model=GameOut, status_code=201)
def create_game(
    data: GameCreate, response: Response, session: Session = Depends(get_session)
) -> Game:
    existing = session.exec(select(Game).where(Game.name == data.name)).first()
    if existing:
        for field, value in data.model_dump().items():
            setattr(existing, field, value)
        existing.updated_at = datetime.now(UTC)
        session.add(existing)
        session.commit()
        session.refresh(existing)
        response.status_code = 200
        return existing

    game = Game(**data.model_dump())
    session.add(game)
    session.commit()
    session.refresh(game)
    return game


@router.get("/{game_name}", response_model=GameOut)
def get_game(game_name: str, session: Session = Depends(get_session)) -> Game:
    return get_game_or_404(game_name, session)
