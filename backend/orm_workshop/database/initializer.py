"""
Schema creation helpers and sample data for the workshop modules.

All population methods take a sync Session, so the async modules can reuse
them through AsyncSession.run_sync().
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Actor, Comment, Country, Movie, Post
from ..tenant.tenants import Tenant

logger = logging.getLogger(__name__)


COUNTRY_CODES: List[str] = [
    "AF", "AX",
    "AL", "DZ", "AS", "AD", "AO", "AI", "AQ", "AG", "AR", "AM", "AW", "AU", "AT",
    "AZ", "BS", "BH", "BD", "BB", "BY", "BE", "BZ", "BJ", "BM", "BT", "BO", "BQ",
    "BA", "BW", "BV", "BR", "IO", "BN", "BG", "BF", "BI", "KH", "CM", "CA", "CV",
    "KY", "CF", "TD", "CL", "CN", "CX", "CC", "CO", "KM", "CG", "CD", "CK", "CR",
    "CI", "HR", "CU", "CW", "CY", "CZ", "DK", "DJ", "DM", "DO", "EC", "EG", "SV",
    "GQ", "ER", "EE", "ET", "FK", "FO", "FJ", "FI", "FR", "GF", "PF", "TF", "GA",
    "GM", "GE", "DE", "GH", "GI", "GR", "GL", "GD", "GP", "GU", "GT", "GG", "GN",
    "GW", "GY", "HT", "HM", "VA", "HN", "HK", "HU", "IS", "IN", "ID", "IR", "IQ",
    "IE", "IM", "IL", "IT", "JM", "JP", "JE", "JO", "KZ", "KE", "KI", "KP", "KR",
    "KW", "KG", "LA", "LV", "LB", "LS", "LR", "LY", "LI", "LT", "LU", "MO", "MK",
    "MG", "MW", "MY", "MV", "ML", "MT", "MH", "MQ", "MR", "MU", "YT", "MX", "FM",
    "MD", "MC", "MN", "ME", "MS", "MA", "MZ", "MM", "NA", "NR", "NP", "NL", "NC",
    "NZ", "NI", "NE", "NG", "NU", "NF", "MP", "NO", "OM", "PK", "PW", "PS", "PA",
    "PG", "PY", "PE", "PH", "PN", "PL", "PT", "PR", "QA", "RE", "RO", "RU", "RW",
    "BL", "SH", "KN", "LC", "MF", "PM", "VC", "WS", "SM", "ST", "SA", "SN", "RS",
    "SC", "SL", "SG", "SX", "SK", "SI", "SB", "SO", "ZA", "GS", "SS", "ES", "LK",
    "SD", "SR", "SJ", "SZ", "SE", "CH", "SY", "TW", "TJ", "TZ", "TH", "TL", "TG",
    "TK", "TO", "TT", "TN", "TR", "TM", "TC", "TV", "UG", "UA", "AE", "GB", "US",
    "UM", "UY", "UZ", "VU", "VE", "VN", "VG", "VI", "WF", "EH", "YE", "ZM", "ZW",
]

# Makes each description a few kilobytes so cache hits are measurable
COUNTRY_DESCRIPTION_PADDING = "동해물과 백두산이 마르고 닳도록" * 100


@dataclass(frozen=True)
class SampleActor:
    first_name: str
    last_name: str
    birthday: str


# key -> (default, korean, english)
_CAST: Dict[str, Tuple[SampleActor, SampleActor, SampleActor]] = {
    "johnny_depp": (
        SampleActor("Johnny", "Depp", "1979-10-28"),
        SampleActor("조니", "뎁", "1979-10-28"),
        SampleActor("Johnny", "Depp", "1973-06-09"),
    ),
    "brad_pitt": (
        SampleActor("Brad", "Pitt", "1982-05-16"),
        SampleActor("브래드", "피트", "1982-05-16"),
        SampleActor("Brad", "Pitt", "1970-12-18"),
    ),
    "angelina_jolie": (
        SampleActor("Angelina", "Jolie", "1983-11-10"),
        SampleActor("안제리나", "졸리", "1983-11-10"),
        SampleActor("Angelina", "Jolie", "1983-11-10"),
    ),
    "jennifer_aniston": (
        SampleActor("Jennifer", "Aniston", "1975-07-23"),
        SampleActor("제니퍼", "애니스톤", "1975-07-23"),
        SampleActor("Jennifer", "Aniston", "1975-07-23"),
    ),
    "angelina_grace": (
        SampleActor("Angelina", "Grace", "1988-09-02"),
        SampleActor("안젤리나", "그레이스", "1988-09-02"),
        SampleActor("Angelina", "Grace", "1988-09-02"),
    ),
    "craig_daniel": (
        SampleActor("Craig", "Daniel", "1970-11-12"),
        SampleActor("다니엘", "크레이그", "1970-11-12"),
        SampleActor("Craig", "Daniel", "1970-11-12"),
    ),
    "ellen_paige": (
        SampleActor("Ellen", "Paige", "1981-12-20"),
        SampleActor("엘렌", "페이지", "1981-12-20"),
        SampleActor("Ellen", "Paige", "1981-12-20"),
    ),
    "russell_crowe": (
        SampleActor("Russell", "Crowe", "1970-01-20"),
        SampleActor("러셀", "크로우", "1970-01-20"),
        SampleActor("Russell", "Crowe", "1970-01-20"),
    ),
    "edward_norton": (
        SampleActor("Edward", "Norton", "1975-04-03"),
        SampleActor("에드워드", "노튼", "1975-04-03"),
        SampleActor("Edward", "Norton", "1975-04-03"),
    ),
}

# (english name, korean name, producer cast key or literal name, release date, cast keys)
_MOVIES = [
    ("Gladiator", "글래디에이터", "johnny_depp", "2000-05-01",
     ["russell_crowe", "ellen_paige", "craig_daniel"]),
    ("Guardians of the galaxy", "가디언스 오브 갤럭시", "johnny_depp", "2014-07-21",
     ["angelina_grace", "brad_pitt", "ellen_paige", "angelina_jolie", "johnny_depp"]),
    ("Fight club", "싸움 클럽", "craig_daniel", "1999-09-13",
     ["brad_pitt", "jennifer_aniston", "edward_norton"]),
    ("13 Reasons Why", "13가지 이유", "Suzuki", "2016-01-01",
     ["angelina_jolie", "jennifer_aniston"]),
]

SAMPLE_POSTS = [
    ("My first post title", "Content of my first post"),
    ("My second post title", "Content of my second post"),
]

# (post index, content)
SAMPLE_COMMENTS = [
    (0, "Content 1 of post 1"),
    (0, "Content 2 of post 1"),
    (1, "Content 1 of post 2"),
    (1, "Content 2 of post 1"),
]


def sample_actor(key: str, tenant: Optional[Tenant] = None) -> SampleActor:
    """Sample actor localized for a tenant (None gives the single-tenant data set)."""
    default, korean, english = _CAST[key]
    if tenant is Tenant.KOREAN:
        return korean
    if tenant is Tenant.ENGLISH:
        return english
    return default


class DatabaseInitializer:
    """
    Inserts the sample data each workshop module starts with.

    Every populate method is idempotent: it skips when its table already
    has rows.
    """

    def __init__(self, tenant: Optional[Tenant] = None):
        self.tenant = tenant

    def populate_movies(self, session: Session) -> bool:
        """Insert 9 actors and 4 movies with their cast links."""
        if session.scalar(select(func.count()).select_from(Actor)):
            logger.info("There appears to be data already present, not inserting test data!")
            return False

        logger.info(f"Inserting sample actors and movies (tenant={self.tenant.id if self.tenant else 'default'})")

        actors: Dict[str, Actor] = {}
        for key in _CAST:
            sample = sample_actor(key, self.tenant)
            actor = Actor(
                first_name=sample.first_name,
                last_name=sample.last_name,
                birthday=date.fromisoformat(sample.birthday),
            )
            session.add(actor)
            actors[key] = actor

        for english_name, korean_name, producer, release_date, cast in _MOVIES:
            producer_name = sample_actor(producer, self.tenant).first_name if producer in _CAST else producer
            movie = Movie(
                name=korean_name if self.tenant is Tenant.KOREAN else english_name,
                producer_name=producer_name,
                release_date=datetime.fromisoformat(release_date),
            )
            movie.actors = [actors[key] for key in cast]
            session.add(movie)

        session.flush()
        return True

    def populate_posts(self, session: Session) -> bool:
        """Insert 2 posts and 4 comments."""
        if session.scalar(select(func.count()).select_from(Post)):
            logger.info("Posts already present, skipping sample posts")
            return False

        posts = [Post(title=title, content=content) for title, content in SAMPLE_POSTS]
        session.add_all(posts)
        session.flush()

        session.add_all(
            Comment(post_id=posts[index].id, content=content)
            for index, content in SAMPLE_COMMENTS
        )
        session.flush()
        logger.info(f"Inserted {len(SAMPLE_POSTS)} posts and {len(SAMPLE_COMMENTS)} comments")
        return True

    def populate_countries(self, session: Session) -> int:
        """Insert one row per ISO country code."""
        if session.scalar(select(func.count()).select_from(Country)):
            logger.info("Countries already present, skipping country data")
            return 0

        logger.info("Populate country data ...")
        session.add_all(
            Country(
                code=code,
                name=f"{code} Country",
                description=f"Country code for {code}" + COUNTRY_DESCRIPTION_PADDING,
            )
            for code in COUNTRY_CODES
        )
        session.flush()
        logger.info("Populate country data done.")
        return len(COUNTRY_CODES)

    def populate(self, session: Session, movies: bool = True, posts: bool = True, countries: bool = True) -> None:
        if movies:
            self.populate_movies(session)
        if posts:
            self.populate_posts(session)
        if countries:
            self.populate_countries(session)


__all__ = [
    "COUNTRY_CODES",
    "SAMPLE_POSTS",
    "SAMPLE_COMMENTS",
    "SampleActor",
    "sample_actor",
    "DatabaseInitializer",
]
