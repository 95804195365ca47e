"""
Built-in mind maps for the default sample video (Big Buck Bunny, ~9:56).
One document per size tier; they are validated once at import.
"""

from enum import Enum
from typing import Dict

from videomind.schemas.mindmap import MindMapDocument, validate_document


class DatasetTier(str, Enum):
    small = "small"
    medium = "medium"
    large = "large"


_SMALL = {
    "root_topic": (
        "Big Buck Bunny is a short animated comedy. A gentle giant rabbit is "
        "bullied by three forest rodents. He takes a creative revenge!"
    ),
    "nodes": [
        {
            "topic": "Meet Big Buck Bunny",
            "summary": [
                "A peaceful morning in the meadow",
                "The bunny wakes up and greets the day",
            ],
            "keywords": ["introduction", "meadow", "morning"],
            "timestamp": [0, 150],
        },
        {
            "topic": "The Bullies Strike",
            "summary": [
                "Three rodents harass the forest animals",
                "A butterfly is killed for fun",
            ],
            "keywords": ["conflict", "rodents", "butterfly"],
            "timestamp": [150, 390],
        },
        {
            "topic": "Revenge and Resolution",
            "summary": [
                "The bunny builds traps from the forest",
                "The bullies get a taste of their own medicine",
            ],
            "keywords": ["revenge", "traps", "resolution", "comedy"],
            "timestamp": [390, 596],
        },
    ],
}

_MEDIUM = {
    "root_topic": (
        "Big Buck Bunny follows a good-natured giant rabbit whose quiet life is "
        "disrupted by three mischievous rodents. After they destroy what he "
        "loves, he plans an elaborate and comic revenge. The film was produced "
        "with open-source tools by the Blender Foundation."
    ),
    "nodes": [
        {
            "topic": "Opening Scenery",
            "summary": [
                "Establishing shots of the forest at dawn",
                "Birdsong and a sleepy atmosphere set the tone",
            ],
            "keywords": ["forest", "dawn", "establishing shot"],
            "timestamp": [0, 60],
        },
        {
            "topic": "The Bunny Wakes Up",
            "summary": [
                "Big Buck Bunny climbs out of his burrow",
                "He enjoys the sun and the flowers around him",
            ],
            "keywords": ["character", "burrow", "sunlight", "flowers", "calm"],
            "timestamp": [60, 150],
        },
        {
            "topic": "Enter the Rodents",
            "summary": [
                "Frank, Rinky and Gimera watch from the trees",
                "They start throwing fruit at the bunny",
            ],
            "keywords": ["Frank", "Rinky", "Gimera", "antagonists"],
            "timestamp": [150, 270],
        },
        {
            "topic": "The Butterfly Incident",
            "summary": [
                "The bunny befriends a butterfly",
                "The rodents kill it, and the bunny's mood turns",
            ],
            "keywords": ["butterfly", "turning point", "loss"],
            "timestamp": [270, 390],
        },
        {
            "topic": "Building the Traps",
            "summary": [
                "The bunny carves a bow and sharpens sticks",
                "Traps are set along the rodents' usual path",
            ],
            "keywords": ["preparation", "bow", "traps", "montage", "ingenuity", "planning"],
            "timestamp": [390, 510],
        },
        {
            "topic": "The Payoff",
            "summary": [
                "Each rodent falls into a trap",
                "Frank ends up as a kite and the bunny is content",
            ],
            "keywords": ["payoff", "kite", "comedy"],
            "timestamp": [510, 596],
        },
    ],
    "transcription": [
        {"text": "[birdsong]", "start": 0, "end": 20},
        {"text": "[the bunny yawns]", "start": 75, "end": 80},
        {"text": "[rodents snicker]", "start": 160, "end": 166},
        {"text": "[a butterfly flutters past]", "start": 272, "end": 280},
        {"text": "[wood being carved]", "start": 400, "end": 412},
        {"text": "[the kite rustles in the wind]", "start": 560, "end": 575},
    ],
}

_LARGE = {
    "root_topic": (
        "Big Buck Bunny is a ten-minute open movie. It tells a simple revenge "
        "story in three acts: a calm introduction, an escalating conflict with "
        "three rodents, and a carefully engineered comeback. Its production "
        "showcased what free software could do for animated film!"
    ),
    "nodes": [
        {
            "topic": "Title Sequence",
            "summary": ["Opening credits over a misty forest"],
            "keywords": ["credits", "title"],
            "timestamp": [0, 30],
        },
        {
            "topic": "A Quiet Morning",
            "summary": ["The forest slowly wakes", "A bird falls from a branch"],
            "keywords": ["morning", "forest", "bird"],
            "timestamp": [30, 90],
        },
        {
            "topic": "Big Buck Bunny",
            "summary": ["The hero emerges from his burrow", "He stretches and smiles"],
            "keywords": ["hero", "burrow", "introduction"],
            "timestamp": [90, 150],
        },
        {
            "topic": "First Provocation",
            "summary": ["An apple hits the bunny", "He shrugs it off"],
            "keywords": ["apple", "provocation"],
            "timestamp": [150, 210],
        },
        {
            "topic": "Escalation",
            "summary": ["The rodents throw nuts and spiky fruit", "The bunny trips and falls"],
            "keywords": ["escalation", "nuts", "slapstick"],
            "timestamp": [210, 270],
        },
        {
            "topic": "The Butterfly",
            "summary": ["A butterfly lands on the bunny's nose", "The rodents crush it with a rock"],
            "keywords": ["butterfly", "cruelty", "turning point"],
            "timestamp": [270, 330],
        },
        {
            "topic": "A Change of Heart",
            "summary": ["The bunny's expression hardens", "He decides to act"],
            "keywords": ["decision", "anger"],
            "timestamp": [330, 390],
        },
        {
            "topic": "The Workshop",
            "summary": ["Vines, sticks and rocks become weapons", "A bow is strung"],
            "keywords": ["crafting", "bow", "vines", "rocks", "sticks"],
            "timestamp": [390, 450],
        },
        {
            "topic": "Setting the Traps",
            "summary": ["Traps are hidden under leaves", "The bunny waits in ambush"],
            "keywords": ["traps", "ambush", "patience"],
            "timestamp": [450, 510],
        },
        {
            "topic": "Comeuppance",
            "summary": ["The rodents walk into every trap", "Frank is flown as a kite"],
            "keywords": ["revenge", "kite", "comedy", "ending"],
            "timestamp": [510, 570],
        },
        {
            "topic": "End Credits",
            "summary": ["Credits roll with outtakes"],
            "keywords": ["credits", "outtakes", "Blender Foundation", "open movie", "free software"],
            "timestamp": [570, 596],
        },
    ],
}

BUILTIN_DOCUMENTS: Dict[DatasetTier, MindMapDocument] = {
    DatasetTier.small: validate_document(_SMALL),
    DatasetTier.medium: validate_document(_MEDIUM),
    DatasetTier.large: validate_document(_LARGE),
}


def builtin_document(tier: DatasetTier) -> MindMapDocument:
    return BUILTIN_DOCUMENTS[DatasetTier(tier)]
