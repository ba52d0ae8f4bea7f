import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from tutorbase.core import config
from tutorbase.database import Base, engine, ensure_availability_schema, ensure_bond_schema, ensure_rating_schema
from tutorbase.models import availability, bond, lesson_rating, profile, user  # noqa: F401
from tutorbase.routes import auth_routes, availability_routes, bond_routes, rating_routes

app = FastAPI(title='Tutorbase API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_availability_schema()
        ensure_bond_schema()
        ensure_rating_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.get('/')
def root():
    return {'status': 'Tutorbase API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(bond_routes.router, prefix='/bonds')
app.include_router(rating_routes.router, prefix='/ratings')
