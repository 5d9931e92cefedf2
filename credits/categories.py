"""Credit role taxonomy.

Every category is one row of a declarative table: display name, summary
priority, summary term, the canonical role names used for display, and the
patterns that recognize it. ``CATEGORY_TABLE`` is listed in classification
precedence order (most specific vocabulary first), which is independent of
``priority`` (the order categories appear in a credits summary).
"""

import re
from dataclasses import dataclass
from enum import StrEnum


class RoleCategory(StrEnum):
    PRODUCTION = "production"
    ENGINEERING = "engineering"
    MIXING = "mixing"
    MASTERING = "mastering"
    VOCALS = "vocals"
    INSTRUMENTS = "instruments"
    PERFORMANCE = "performance"
    ORCHESTRAL = "orchestral"
    ARRANGEMENT = "arrangement"
    PROGRAMMING = "programming"
    TECHNICAL = "technical"
    REMIX = "remix"
    SONGWRITING = "songwriting"
    OTHER = "other"


@dataclass(frozen=True)
class CategorySpec:
    """Static configuration for one credit category."""

    category: RoleCategory
    display: str
    priority: int
    summary_term: str
    standard_roles: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, normalized_role: str) -> bool:
        # "other" has no patterns and is the catch-all
        if not self.patterns:
            return True
        return any(p.search(normalized_role) for p in self.patterns)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(s, re.IGNORECASE) for s in sources)


CATEGORY_TABLE: tuple[CategorySpec, ...] = (
    CategorySpec(
        category=RoleCategory.REMIX,
        display="Remix",
        priority=12,
        summary_term="Remixed",
        standard_roles=("Remix", "Additional Production Remix"),
        patterns=_patterns(
            r"\bremix", r"\bre.*mix", r"\bmix.*edit", r"\badditional.*prod.*remix",
            r"\bversion", r"\bedit", r"\brevision",
        ),
    ),
    CategorySpec(
        category=RoleCategory.SONGWRITING,
        display="Songwriting",
        priority=13,
        summary_term="Written",
        standard_roles=("Writer", "Composer", "Lyricist", "Music By", "Words By"),
        patterns=_patterns(
            r"\bwriter", r"\bwritten", r"\bcompos", r"\blyric", r"\bmusic.*by",
            r"\bwords.*by", r"\bsong.*writ", r"\bco.*writ", r"\badditional.*writ",
            r"\bauthor", r"\bcreated.*by", r"\boriginal.*by",
        ),
    ),
    CategorySpec(
        category=RoleCategory.ORCHESTRAL,
        display="Orchestral",
        priority=8,
        summary_term="Orchestral Work",
        standard_roles=(
            "Conductor", "Musical Director", "Concertmaster", "Orchestrator",
            "String Leader", "Section Leader", "Principal", "Orchestra", "Ensemble",
            "Choir", "Chorus",
        ),
        patterns=_patterns(
            r"\bconductor", r"\bmusical.*director", r"\bconcertmaster", r"\borchestra\b",
            r"\bensemble", r"\bchoir", r"\bchorus", r"\bstring.*leader",
            r"\bsection.*leader", r"\bprincipal", r"\bfirst.*chair", r"\bsymphony",
            r"\bphilharmonic", r"\bchamber", r"\bquartet", r"\bquintet", r"\boctet",
        ),
    ),
    CategorySpec(
        category=RoleCategory.ARRANGEMENT,
        display="Arrangement",
        priority=9,
        summary_term="Arranged",
        standard_roles=(
            "Arranger", "String Arranger", "Horn Arranger", "Vocal Arranger",
            "Orchestrator", "Adapted By", "Additional Arrangement",
        ),
        patterns=_patterns(
            r"\barrang", r"\bstring.*arr", r"\bhorn.*arr", r"\bvocal.*arr",
            r"\borchestrat", r"\badapted.*by", r"\bmusical.*arrang",
        ),
    ),
    CategorySpec(
        category=RoleCategory.MASTERING,
        display="Mastering",
        priority=4,
        summary_term="Mastered",
        standard_roles=(
            "Mastered", "Remastered", "Pre-Mastered", "Co-Mastered",
            "Assistant Mastering", "Additional Mastering",
        ),
        patterns=_patterns(
            r"\bmaster", r"\bremaster", r"\bpre.*master", r"\bco.*master",
            r"\bassist.*master", r"\badditional.*master", r"\bfinal.*master",
        ),
    ),
    CategorySpec(
        category=RoleCategory.MIXING,
        display="Mixing",
        priority=3,
        summary_term="Mixed",
        standard_roles=("Mixed", "Co-Mixed", "Assistant Mix", "Additional Mix", "Vocal Mix"),
        patterns=_patterns(
            r"\bmix", r"\bco.*mix", r"\bassist.*mix", r"\badditional.*mix",
            r"\bvocal.*mix", r"\bfinal.*mix", r"\bstereo.*mix",
        ),
    ),
    CategorySpec(
        category=RoleCategory.PRODUCTION,
        display="Production",
        priority=1,
        summary_term="Produced",
        standard_roles=(
            "Producer", "Executive Producer", "Co-Producer", "Associate Producer",
            "Additional Producer", "Vocal Producer", "Music Producer", "Beat Producer",
            "Track Producer",
        ),
        patterns=_patterns(
            r"\bproduc", r"\bexec.*prod", r"\bco.*prod", r"\bassoc.*prod",
            r"\badditional.*prod", r"\bvocal.*prod", r"\bmusic.*prod",
            r"\bbeat.*prod", r"\btrack.*prod",
        ),
    ),
    CategorySpec(
        category=RoleCategory.ENGINEERING,
        display="Engineering",
        priority=2,
        summary_term="Engineered",
        standard_roles=(
            "Engineer", "Recording Engineer", "Audio Engineer", "Sound Engineer",
            "Assistant Engineer", "Additional Engineer", "Co-Engineer", "Vocal Engineer",
            "Tracking Engineer", "Overdub Engineer", "Live Engineer",
        ),
        patterns=_patterns(
            r"\bengineer", r"\brecord", r"\btrack", r"\baudio.*eng", r"\bsound.*eng",
            r"\bassist.*eng", r"\badditional.*eng", r"\bco.*eng", r"\bvocal.*eng",
            r"\boverdub.*eng", r"\blive.*eng", r"\bstudio.*eng", r"\beng.*by",
        ),
    ),
    CategorySpec(
        category=RoleCategory.PROGRAMMING,
        display="Programming",
        priority=10,
        summary_term="Programmed",
        standard_roles=(
            "Programmer", "Beat Programmer", "Drum Programming", "Synthesizer Programming",
            "Sequencer", "Sampler", "Electronic Beats", "Programming By",
        ),
        patterns=_patterns(
            r"\bprogram", r"\bbeat.*prog", r"\bdrum.*prog", r"\bsynth.*prog",
            r"\bsequenc", r"\bsampl", r"\belectronic.*beat", r"\bloop", r"\bmidi",
        ),
    ),
    CategorySpec(
        category=RoleCategory.TECHNICAL,
        display="Technical",
        priority=11,
        summary_term="Technical Support",
        standard_roles=(
            "Assistant", "Tape Operator", "Digital Editing", "Pro Tools Operator",
            "Technical Assistant", "Setup", "Maintenance", "Equipment",
        ),
        patterns=_patterns(
            r"\bassistant", r"\btape.*operator", r"\bdigital.*edit", r"\bpro.*tools.*op",
            r"\btechnical.*assist", r"\bsetup", r"\bmaintenance", r"\bequipment",
            r"\btech.*support", r"\bstudio.*tech",
        ),
    ),
    CategorySpec(
        category=RoleCategory.PERFORMANCE,
        display="Performance",
        priority=7,
        summary_term="Performed",
        standard_roles=(
            "Performer", "Featured Artist", "Guest Vocalist", "Lead Performer", "Solo",
            "Soloist", "Featuring", "With", "Appears Courtesy Of",
        ),
        patterns=_patterns(
            r"\bperform", r"\bfeatured", r"\bguest", r"\bappears", r"\bwith\b",
            r"\bcourtesy.*of", r"\bspecial.*guest", r"\bsolo",
        ),
    ),
    CategorySpec(
        category=RoleCategory.VOCALS,
        display="Vocals",
        priority=5,
        summary_term="Vocals",
        standard_roles=("Vocals", "Lead Vocals", "Backing Vocals", "Harmony Vocals", "Singer", "Voice"),
        patterns=_patterns(
            r"\bvocal", r"\bsing", r"\bvoice", r"\bharmony", r"\bfeaturing",
        ),
    ),
    CategorySpec(
        category=RoleCategory.INSTRUMENTS,
        display="Instruments",
        priority=6,
        summary_term="Instruments",
        standard_roles=(
            "Guitar", "Electric Guitar", "Acoustic Guitar", "Bass", "Bass Guitar",
            "Electric Bass", "Drums", "Percussion", "Piano", "Keyboards", "Synthesizer",
        ),
        patterns=_patterns(
            r"\bguitar", r"\bbass", r"\bdrum", r"\bpiano", r"\bkeyboard", r"\bsynth",
            r"\bpercussion", r"\bviolin", r"\bviola", r"\bcello", r"\bcontrabass",
            r"\bflute", r"\boboe", r"\bclarinet", r"\bsaxophone", r"\btrumpet",
            r"\btrombone", r"\bhorn", r"\btuba", r"\bharp", r"\borgan", r"\brhodes",
            r"\bhammond", r"\bwurlitzer", r"\bmoog", r"\bstrings\b", r"\blead\b",
        ),
    ),
    CategorySpec(
        category=RoleCategory.OTHER,
        display="Additional Credits",
        priority=99,
        summary_term="Other Credits",
        standard_roles=(),
        patterns=(),
    ),
)

CATEGORY_SPECS: dict[RoleCategory, CategorySpec] = {spec.category: spec for spec in CATEGORY_TABLE}

SUMMARY_ORDER: tuple[CategorySpec, ...] = tuple(sorted(CATEGORY_TABLE, key=lambda s: s.priority))


# Abbreviations expanded during normalization, applied in declaration order
# as whole-word substitutions on already-lowercased text.
ABBREVIATIONS: dict[str, str] = {
    # Production
    "prod": "producer",
    "exec prod": "executive producer",
    "co-prod": "co-producer",
    "assoc prod": "associate producer",
    "co prod": "co-producer",
    # Engineering
    "eng": "engineer",
    "rec eng": "recording engineer",
    "mix eng": "mixing engineer",
    "mast eng": "mastering engineer",
    "asst eng": "assistant engineer",
    # Vocals / performance
    "voc": "vocals",
    "lead voc": "lead vocals",
    "bg voc": "backing vocals",
    "bgv": "backing vocals",
    "harmony voc": "harmony vocals",
    "feat": "featuring",
    "ft": "featuring",
    "perf": "performer",
    "guest": "guest artist",
    "sp guest": "special guest",
    # Instruments
    "gtr": "guitar",
    "elec gtr": "electric guitar",
    "ac gtr": "acoustic guitar",
    "bass gtr": "bass guitar",
    "keys": "keyboards",
    "kbd": "keyboards",
    "synt": "synthesizer",
    "synth": "synthesizer",
    "perc": "percussion",
    "drm": "drums",
    "dr": "drums",
    "elec": "electric",
    "ac": "acoustic",
    "bs": "bass",
    "gt": "guitar",
    "gtrs": "guitars",
    "pno": "piano",
    "org": "organ",
    "vln": "violin",
    "vla": "viola",
    "vc": "cello",
    "cb": "contrabass",
    "fl": "flute",
    "ob": "oboe",
    "cl": "clarinet",
    "sax": "saxophone",
    "tpt": "trumpet",
    "tbn": "trombone",
    "hn": "horn",
    "tba": "tuba",
    # Orchestral
    "cond": "conductor",
    "orch": "orchestrator",
    "str": "strings",
    "ens": "ensemble",
    "dir": "director",
    "mus dir": "musical director",
    "conc": "concertmaster",
    # Arrangement
    "arr": "arranger",
    "str arr": "string arranger",
    "horn arr": "horn arranger",
    "voc arr": "vocal arranger",
    # Programming
    "prog": "programmer",
    "program": "programmer",
    "seq": "sequencer",
    "samp": "sampler",
    "drum prog": "drum programming",
    "beat prog": "beat programmer",
    # Technical
    "asst": "assistant",
    "tech": "technical",
    "op": "operator",
    "tape op": "tape operator",
    "pt op": "pro tools operator",
    # Other
    "comp": "composer",
    "lyr": "lyricist",
    "rmx": "remix",
    "mix": "mixed",
    "mstr": "mastered",
}


# Exact normalized role text -> display form
STANDARD_ROLE_DISPLAY: dict[str, str] = {
    # Production
    "producer": "Producer",
    "executive producer": "Executive Producer",
    "co producer": "Co-Producer",
    "co-producer": "Co-Producer",
    "associate producer": "Associate Producer",
    "additional producer": "Additional Producer",
    "vocal producer": "Vocal Producer",
    "music producer": "Music Producer",
    "beat producer": "Beat Producer",
    "produced by": "Producer",
    # Engineering
    "engineer": "Engineer",
    "recording engineer": "Recording Engineer",
    "audio engineer": "Audio Engineer",
    "sound engineer": "Sound Engineer",
    "tracking engineer": "Tracking Engineer",
    "assistant engineer": "Assistant Engineer",
    "co engineer": "Co-Engineer",
    "additional engineer": "Additional Engineer",
    # Mixing
    "mixed": "Mixed By",
    "mixed by": "Mixed By",
    "mixing": "Mixed By",
    "mixer": "Mixed By",
    "co mixed": "Co-Mixed",
    "assistant mix": "Assistant Mix",
    "additional mix": "Additional Mix",
    # Mastering
    "mastered": "Mastered By",
    "mastered by": "Mastered By",
    "mastering": "Mastered By",
    "remastered": "Remastered By",
    "remastered by": "Remastered By",
    "pre mastered": "Pre-Mastered",
    "co mastered": "Co-Mastered",
    # Vocals
    "vocals": "Vocals",
    "lead vocals": "Lead Vocals",
    "backing vocals": "Backing Vocals",
    "harmony vocals": "Harmony Vocals",
    "additional vocals": "Additional Vocals",
    "guest vocals": "Guest Vocals",
    "featuring": "Featuring",
    # Performance
    "performer": "Performer",
    "featured artist": "Featured Artist",
    "guest artist": "Guest Artist",
    "special guest": "Special Guest",
    "appears courtesy of": "Appears Courtesy Of",
    # Arrangement
    "arranger": "Arranger",
    "arranged by": "Arranger",
    "string arranger": "String Arranger",
    "horn arranger": "Horn Arranger",
    "vocal arranger": "Vocal Arranger",
    "orchestrator": "Orchestrator",
    # Programming
    "programmer": "Programmer",
    "programmed by": "Programmer",
    "beat programmer": "Beat Programmer",
    "drum programming": "Drum Programming",
    "synthesizer programming": "Synthesizer Programming",
    # Orchestral
    "conductor": "Conductor",
    "musical director": "Musical Director",
    "concertmaster": "Concertmaster",
    "orchestra": "Orchestra",
    "ensemble": "Ensemble",
    # Songwriting
    "writer": "Writer",
    "written-by": "Written-By",
    "written by": "Written-By",
    "composer": "Composer",
    "composed by": "Composer",
    "lyricist": "Lyricist",
    "lyrics by": "Lyricist",
    "songwriter": "Songwriter",
    # Common variations
    "recorded": "Recorded By",
    "recorded by": "Recorded By",
    "recording": "Recorded By",
    "tracked": "Tracked By",
    "tracking": "Tracked By",
}
