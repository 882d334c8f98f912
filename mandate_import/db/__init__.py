"""Database layer package for all SQL and persistence boundaries."""

from .day_value_persistence import SQLAlchemyDayValuePersistenceService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	DatabaseHealthPort,
	DayValueRepositoryPort,
	DayValueUpsertRequest,
	DayValueUpsertResult,
	MandateRecord,
	MandateRepositoryPort,
	MandateStatsRefreshResult,
	MandateStatsRepositoryPort,
	MandateUpsertRequest,
	MandateUpsertResult,
)
from .mandate_persistence import SQLAlchemyMandatePersistenceService
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"DayValueRepositoryPort",
	"DayValueUpsertRequest",
	"DayValueUpsertResult",
	"MandateRecord",
	"MandateRepositoryPort",
	"MandateStatsRefreshResult",
	"MandateStatsRepositoryPort",
	"MandateUpsertRequest",
	"MandateUpsertResult",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyDayValuePersistenceService",
	"SQLAlchemyMandatePersistenceService",
	"db_create_engine",
]
