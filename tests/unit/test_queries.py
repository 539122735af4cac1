"""Tests for read-only soundlist queries."""

from soundpad_bridge.core.document.queries import (
    category_placements,
    get_definition,
    list_categories,
    list_category_icons,
    list_definitions,
    parse_sound_list,
)
from soundpad_bridge.models.soundlist import CategoryEntry, CategoryPlacement, DefinitionInfo


def test_list_definitions_decodes_attributes(sample_text: str) -> None:
    definitions = list_definitions(sample_text)
    assert len(definitions) == 5
    assert definitions[2].custom_tag == "Crowd & Cheers"
    assert definitions[0].artist == "DJ"
    assert definitions[0].duration == "0:03"
    assert [d.id for d in definitions] == [0, 1, 2, 3, 4]


def test_get_definition(sample_text: str) -> None:
    info = get_definition(sample_text, 1)
    assert info is not None
    assert info.url == "C:/Sounds/bell.wav"
    assert get_definition(sample_text, 5) is None
    assert get_definition(sample_text, -1) is None


def test_list_categories_skips_hidden_and_reports_parent(sample_text: str) -> None:
    assert list_categories(sample_text) == [
        CategoryEntry(name="Memes", parent=""),
        CategoryEntry(name="Music", parent=""),
        CategoryEntry(name="Rock", parent="Music"),
        CategoryEntry(name="Archive", parent=""),
        CategoryEntry(name="Rock", parent="Archive"),
    ]


def test_list_categories_without_section() -> None:
    assert list_categories("<Soundlist></Soundlist>") == []


def test_list_category_icons(sample_text: str) -> None:
    icons = {(i.name, i.icon, i.is_base64) for i in list_category_icons(sample_text)}
    assert ("Memes", "stock_smile", False) in icons
    assert ("Music", "iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB", True) in icons
    assert ("Archive", "", False) in icons
    assert len(list_category_icons(sample_text)) == 6


def test_category_placements(sample_text: str) -> None:
    placements = category_placements(sample_text)
    assert placements[0] == CategoryPlacement(category="Memes", parent="", position=0)
    assert placements[1] == CategoryPlacement(category="Music", parent="", position=0)
    # Listed in Memes and in Archive/Rock; the later one wins.
    assert placements[2] == CategoryPlacement(category="Rock", parent="Archive", position=0)
    # Only in a hidden category.
    assert 3 not in placements
    assert 4 not in placements


LIVE_REPLY = """\
<Soundlist>
  <Category index="1" name="Memes">
    <Sound index="2" url="C:\\Sounds\\bell.wav" title="Bell" durationInMs="65000"/>
    <Category index="2" name="Deep">
      <Sound index="1" url="C:\\Sounds\\airhorn.mp3" customTag="Airhorn" duration="0:03"/>
    </Category>
  </Category>
  <Sound index="2" url="C:\\Sounds\\duplicate.wav"/>
  <Sound index="x" url="C:\\Sounds\\junk.wav"/>
  <Sound index="3" url="C:\\Sounds\\rock.mp3" tag="Rock &amp; Roll" artist="Band"></Sound>
</Soundlist>"""


def test_parse_sound_list_from_nested_reply() -> None:
    sounds = parse_sound_list(LIVE_REPLY)

    assert [s.id for s in sounds] == [0, 1, 2]
    assert sounds[0] == DefinitionInfo(
        id=0, url="C:\\Sounds\\airhorn.mp3", custom_tag="Airhorn", duration="0:03"
    )
    assert sounds[1].url == "C:\\Sounds\\bell.wav"
    assert (sounds[1].title, sounds[1].duration) == ("Bell", "1:05")
    assert (sounds[2].custom_tag, sounds[2].artist) == ("Rock & Roll", "Band")


def test_parse_sound_list_of_non_list_reply() -> None:
    assert parse_sound_list("R-200") == []
    assert parse_sound_list("") == []
