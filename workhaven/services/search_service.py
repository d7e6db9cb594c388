"""
Spot search: text and amenity filters, distance and rating ordering.

Column filters run in SQL; the computed overall rating and distance are
applied in memory after the query.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from workhaven.db import models, schemas
from workhaven.utils import ratings
from workhaven.utils.geo import DEFAULT_RADIUS_METERS, distance_between, format_distance

logger = logging.getLogger(__name__)


@dataclass
class SpotSearchCriteria:
    query: str = ""
    city: Optional[str] = None
    min_wifi: Optional[int] = None
    noise: Optional[str] = None
    outlets_only: bool = False
    min_overall: Optional[float] = None
    rating_description: Optional[str] = None
    origin_latitude: Optional[float] = None
    origin_longitude: Optional[float] = None
    radius_meters: Optional[float] = None
    sort_by_rating_only: bool = False
    limit: Optional[int] = None

    @property
    def has_origin(self) -> bool:
        return self.origin_latitude is not None and self.origin_longitude is not None


@dataclass
class SpotHit:
    spot: models.Spot
    overall_rating: float
    distance_meters: Optional[float] = None


def serialize_spot(spot: models.Spot, distance_meters: Optional[float] = None) -> schemas.SpotWithRatings:
    data = schemas.Spot.model_validate(spot).model_dump()
    data.update(ratings.rating_summary(spot))
    if distance_meters is not None:
        data["distance_meters"] = round(distance_meters, 1)
        data["formatted_distance"] = format_distance(distance_meters)
    return schemas.SpotWithRatings(**data)


def _base_query(db: Session):
    return db.query(models.Spot).options(selectinload(models.Spot.user_ratings))


def _sort_key(hit: SpotHit):
    # Spots with a known distance come first, nearest first; ties and the rest by rating
    has_distance = hit.distance_meters is not None
    return (0 if has_distance else 1, hit.distance_meters or 0.0, -hit.overall_rating)


def search_spots(db: Session, criteria: SpotSearchCriteria) -> List[SpotHit]:
    q = _base_query(db)
    text = (criteria.query or "").strip()
    if text:
        pattern = f"%{text}%"
        q = q.filter(
            or_(
                models.Spot.name.ilike(pattern),
                models.Spot.address.ilike(pattern),
                models.Spot.tips.ilike(pattern),
            )
        )
    if criteria.city:
        q = q.filter(models.Spot.address.ilike(f"%{criteria.city.strip()}%"))
    if criteria.min_wifi is not None:
        q = q.filter(models.Spot.wifi_rating >= criteria.min_wifi)
    if criteria.noise:
        q = q.filter(models.Spot.noise_rating == ratings.NoiseRating.parse(criteria.noise).value)
    if criteria.outlets_only:
        q = q.filter(models.Spot.outlets.is_(True))

    hits: List[SpotHit] = []
    for spot in q.all():
        overall = ratings.overall_rating(spot)
        if criteria.min_overall is not None and overall < criteria.min_overall:
            continue
        if criteria.rating_description and ratings.rating_description(overall) != criteria.rating_description:
            continue
        distance = None
        if criteria.has_origin:
            distance = distance_between(
                criteria.origin_latitude, criteria.origin_longitude, spot.latitude, spot.longitude
            )
            if criteria.radius_meters is not None and distance > criteria.radius_meters:
                continue
        hits.append(SpotHit(spot=spot, overall_rating=overall, distance_meters=distance))

    if criteria.sort_by_rating_only:
        hits.sort(key=lambda h: -h.overall_rating)
    else:
        hits.sort(key=_sort_key)

    if criteria.limit is not None:
        hits = hits[:criteria.limit]
    logger.debug("Spot search returned %d hits", len(hits), extra={"query": text})
    return hits


def top_rated_spots(db: Session) -> List[models.Spot]:
    hits = search_spots(db, SpotSearchCriteria(min_overall=ratings.TOP_RATED_THRESHOLD, sort_by_rating_only=True))
    return [h.spot for h in hits]


def spots_with_user_ratings(db: Session) -> List[models.Spot]:
    return [s for s in _base_query(db).order_by(models.Spot.name.asc()).all() if s.user_ratings]


def spots_by_rating_description(db: Session, description: str) -> List[models.Spot]:
    hits = search_spots(db, SpotSearchCriteria(rating_description=description, sort_by_rating_only=True))
    return [h.spot for h in hits]


def nearby_spots(
    db: Session,
    latitude: float,
    longitude: float,
    radius_meters: float = DEFAULT_RADIUS_METERS,
) -> List[SpotHit]:
    return search_spots(
        db,
        SpotSearchCriteria(origin_latitude=latitude, origin_longitude=longitude, radius_meters=radius_meters),
    )


def spot_stats(db: Session) -> schemas.SpotStats:
    spots = _base_query(db).all()
    return schemas.SpotStats(
        total_spots=len(spots),
        average_overall_rating=ratings.average_rating_across(spots),
        rating_distribution=ratings.rating_distribution(spots),
        top_rated_count=sum(1 for s in spots if ratings.overall_rating(s) >= ratings.TOP_RATED_THRESHOLD),
        spots_with_user_ratings=sum(1 for s in spots if s.user_ratings),
    )
