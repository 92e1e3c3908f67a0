"""Content curation agent: YouTube videos and interactive simulations per topic."""

import asyncio
import logging

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError, ValidationError, failure
from teachmate.services import youtube
from teachmate.services.curriculum import canonical_subject, grade_number

logger = logging.getLogger(__name__)

RESOURCE_CONFIG = {
    "Science": {
        "channels": [
            "Khan Academy",
            "CrashCourse",
            "Bozeman Science",
            "Amoeba Sisters",
            "Professor Dave Explains",
            "TED-Ed",
        ],
        "keywords": ["science", "experiment", "explanation", "CBSE", "education"],
        "simulations": {
            "photosynthesis": {
                "title": "Energy Forms and Changes",
                "url": "https://phet.colorado.edu/en/simulations/energy-forms-and-changes",
                "type": "PhET Simulation",
            },
            "electricity": {
                "title": "Circuit Construction Kit",
                "url": "https://phet.colorado.edu/en/simulations/circuit-construction-kit-dc",
                "type": "PhET Simulation",
            },
            "forces": {
                "title": "Forces and Motion",
                "url": "https://phet.colorado.edu/en/simulations/forces-and-motion-basics",
                "type": "PhET Simulation",
            },
            "light": {
                "title": "Bending Light",
                "url": "https://phet.colorado.edu/en/simulations/bending-light",
                "type": "PhET Simulation",
            },
            "matter": {
                "title": "States of Matter",
                "url": "https://phet.colorado.edu/en/simulations/states-of-matter",
                "type": "PhET Simulation",
            },
        },
    },
    "Mathematics": {
        "channels": ["Khan Academy", "3Blue1Brown", "Numberphile", "PatrickJMT", "Math Antics", "TED-Ed"],
        "keywords": ["math", "mathematics", "tutorial", "problem solving", "CBSE"],
        "simulations": {
            "algebra": {
                "title": "Desmos Graphing Calculator",
                "url": "https://www.desmos.com/calculator",
                "type": "Interactive Tool",
            },
            "geometry": {
                "title": "GeoGebra Geometry",
                "url": "https://www.geogebra.org/geometry",
                "type": "Interactive Tool",
            },
            "graphing": {
                "title": "Desmos Graphing",
                "url": "https://www.desmos.com/calculator",
                "type": "Interactive Tool",
            },
        },
    },
    "English": {
        "channels": ["CrashCourse", "TED-Ed", "The School of Life", "Khan Academy"],
        "keywords": ["literature", "grammar", "writing", "english", "CBSE"],
        "simulations": {},
    },
}


def resource_config(subject: str) -> dict:
    config = RESOURCE_CONFIG.get(canonical_subject(subject))
    if config is None:
        supported = ", ".join(RESOURCE_CONFIG)
        raise ValidationError(f'Subject "{subject}" not supported. Supported: {supported}')
    return config


def calculate_relevance(video: dict, topic: str, config: dict) -> float:
    """Score a YouTube video item for a topic, 0.0 to 1.0."""
    score = 0.0
    snippet = video.get("snippet", {})
    title = snippet.get("title", "").lower()
    topic_lower = topic.lower()

    # Title match
    if topic_lower in title:
        score += 0.4
    elif any(word and word in topic_lower for word in title.split(" ")):
        score += 0.2

    # Channel reputation
    channel = snippet.get("channelTitle", "")
    if any(known in channel for known in config["channels"]):
        score += 0.3

    # Duration sweet spot
    details = video.get("contentDetails")
    if details:
        minutes = youtube.parse_duration(details.get("duration", ""))
        if 5 <= minutes <= 15:
            score += 0.2
        elif 3 <= minutes <= 20:
            score += 0.1

    # Engagement
    stats = video.get("statistics")
    if stats:
        views = int(stats.get("viewCount", 0) or 0)
        likes = int(stats.get("likeCount", 0) or 0)
        if views > 0:
            ratio = likes / views
            if ratio > 0.02:
                score += 0.1
            elif ratio > 0.01:
                score += 0.05

    return min(round(score, 4), 1.0)


def _is_english(video: dict) -> bool:
    snippet = video.get("snippet", {})
    language = snippet.get("defaultLanguage") or snippet.get("defaultAudioLanguage")
    return not language or language.startswith("en")


async def find_videos(topic: str, subject: str, grade, config: dict, limit: int = 3) -> list[dict]:
    """Top videos for one topic; provider failures yield an empty list."""
    query = f"{topic} {subject} {' '.join(config['keywords'])} grade {grade_number(grade)}"
    try:
        ids = await youtube.search_video_ids(query, max_results=10)
        items = await youtube.video_details(ids)
    except ExternalDependencyError as e:
        logger.warning("Video search failed for topic %r: %s", topic, e)
        return []

    videos = []
    for item in filter(_is_english, items):
        snippet = item.get("snippet", {})
        minutes = youtube.parse_duration(item.get("contentDetails", {}).get("duration", ""))
        videos.append({
            "title": snippet.get("title", ""),
            "url": f"https://www.youtube.com/watch?v={item.get('id')}",
            "duration": youtube.format_duration(minutes),
            "source": snippet.get("channelTitle", ""),
            "topic": topic,
            "thumbnail": snippet.get("thumbnails", {}).get("medium", {}).get("url"),
            "relevance_score": calculate_relevance(item, topic, config),
            "subject": subject,
        })
    videos.sort(key=lambda v: v["relevance_score"], reverse=True)
    return videos[:limit]


def find_simulations(topics: list[str], subject: str, config: dict) -> list[dict]:
    simulations = []
    for topic in topics:
        topic_lower = topic.lower()
        first_word = topic_lower.split(" ")[0] if topic_lower else ""
        for key, sim in config["simulations"].items():
            if key in topic_lower or (first_word and first_word in key):
                simulations.append({**sim, "topic": topic, "subject": subject})
    return simulations


def _matches(session_topics: list[str], resource_topic: str) -> bool:
    rt = resource_topic.lower()
    return any(t.lower() in rt or rt in t.lower() for t in session_topics)


def distribute_to_sessions(session_topics: dict[int, list[str]], videos: list[dict], simulations: list[dict]) -> dict[int, dict]:
    """Assign resources to sessions whose topics overlap the resource topic.

    ``session_topics`` maps session number to its topics; the result maps
    session number to ``{"videos": [...], "simulations": [...]}``.
    """
    resources = {}
    for number, topics in session_topics.items():
        resources[number] = {
            "videos": [
                {k: v[k] for k in ("title", "url", "duration", "source", "topic")}
                for v in videos
                if _matches(topics, v["topic"])
            ],
            "simulations": [
                {k: s[k] for k in ("title", "url", "type", "topic")}
                for s in simulations
                if _matches(topics, s["topic"])
            ],
        }
    return resources


async def curate(topics: list[str], subject: str, grade) -> dict:
    """Find videos and simulations for each topic.

    Returns ``{success, videos, simulations, summary}`` or a failure result.
    """
    try:
        if not topics:
            raise ValidationError("Topics must be a non-empty array")
        config = resource_config(subject)
        subject = canonical_subject(subject)

        videos = []
        for index, topic in enumerate(topics):
            if index:
                await asyncio.sleep(settings.CURATION_TOPIC_DELAY_SECONDS)
            found = await find_videos(topic, subject, grade, config)
            logger.info("Curated %d videos for topic %r", len(found), topic)
            videos.extend(found)

        simulations = find_simulations(topics, subject, config)
        return {
            "success": True,
            "videos": videos,
            "simulations": simulations,
            "summary": {
                "total_videos": len(videos),
                "total_simulations": len(simulations),
                "topics_covered": len(topics),
            },
        }
    except ValidationError as e:
        return failure(e)
    except Exception as e:
        logger.exception("Content curation failed")
        return failure(e)
