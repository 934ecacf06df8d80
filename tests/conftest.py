import os
import sys
import pytest
from unittest.mock import MagicMock, patch

# Ensure project packages can be imported
sys.path.append(os.getcwd())

from narrative.progress.view import ProgressSnapshot
from narrative.story.model import (
    Background,
    Branch,
    Character,
    CharacterName,
    CharacterSprite,
    Choice,
    End,
    If,
    MultiTimesPlay,
    Next,
    ScreenEffect,
    SimpleText,
    Story,
    StoryEntry,
)
from narrative.story.store import StoryGraphStore


@pytest.fixture(autouse=True)
def mock_pygame():
    """
    Global mock for pygame subsystems to allow headless testing.
    Autoused so no test opens a window or polls a real joystick.
    """
    with patch('pygame.init'), \
         patch('pygame.display'), \
         patch('pygame.event'), \
         patch('pygame.joystick'), \
         patch('pygame.key'), \
         patch('pygame.mouse'):

        import pygame
        pygame.joystick.get_count = MagicMock(return_value=0)

        yield


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from frameg.core.events import EventBus
    return EventBus()


def say(speaker: str, text: str) -> SimpleText:
    return SimpleText(text=text, speaker=CharacterName(name=speaker))


@pytest.fixture
def stories():
    """
    A small branching story graph.

    prologue: 0 text, 1 text + sprite, 2 branch (cave / tree / redirect)
    cave: 0 text, 1 end
    tree: 0 gate (plays 2 -> secret), 1 end
    redirect: 0 next -> cave
    secret: 0 end
    """
    prologue = Story(id="prologue", entries=(
        StoryEntry(step=0, components=(
            say("alice", "Hello there."),
            Background(image_ref="forest", step=0),
        )),
        StoryEntry(step=1, components=(
            say("bob", "Which way?"),
            CharacterSprite(character=Character(name="bob", face="calm"), step=1),
            ScreenEffect(effect_ref="flash", step=1),
        )),
        StoryEntry(
            step=2,
            controller=Branch.from_slots([
                Choice(text="Cave", next_story="cave"),
                None,
                Choice(text="Tree", next_story="tree"),
                None,
                Choice(text="Elsewhere", next_story="redirect"),
            ]),
            components=(say("alice", "Decide."),),
        ),
    ))
    cave = Story(id="cave", entries=(
        StoryEntry(step=0, components=(say("alice", "Dry in here."),)),
        StoryEntry(step=1, controller=End(), components=(say("narrator", "Dawn."),)),
    ))
    tree = Story(id="tree", entries=(
        StoryEntry(
            step=0,
            controller=If(lock=MultiTimesPlay(threshold=2), target="secret"),
            components=(say("bob", "Endless forest."),),
        ),
        StoryEntry(step=1, controller=End()),
    ))
    redirect = Story(id="redirect", entries=(
        StoryEntry(step=0, controller=Next(target="cave"), components=(say("bob", "Never shown."),)),
    ))
    secret = Story(id="secret", entries=(
        StoryEntry(step=0, controller=End(), components=(say("bob", "The lights!"),)),
    ))
    return [prologue, cave, tree, redirect, secret]


@pytest.fixture
def store(stories):
    return StoryGraphStore(stories)


@pytest.fixture
def progress():
    """Progress with nothing completed."""
    return ProgressSnapshot()
