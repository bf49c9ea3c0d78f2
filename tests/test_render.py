from fakes import FakeScreen, FirstChooser, make_question

from reviewquiz.models import AnswerPhase, Question, QuizOption
from reviewquiz.render import (
    CLEAR_LINE,
    CLEAR_SCREEN,
    CORRECT_GLYPH,
    FOOTER_LINES,
    WRONG_GLYPH,
    Anchor,
    RenderCache,
    Renderer,
    bottom_offset,
    choose_anchor,
    display_width,
    move_to,
)
from reviewquiz.session import FocusDirection, QuestionState, QuizSession

HEADER_LINES = 16


def _session() -> QuizSession:
    question = make_question()
    return QuizSession(topic="Options", question=question, state=QuestionState.for_question(question, FirstChooser()))


def _render(screen: FakeScreen) -> tuple[Renderer, QuizSession]:
    renderer = Renderer(screen, color=False)
    session = _session()
    renderer.full_repaint(session)
    return renderer, session


def test_choose_anchor_threshold() -> None:
    assert choose_anchor(terminal_rows=30, cursor_row=10, option_count=4) is Anchor.TOP
    assert choose_anchor(terminal_rows=17, cursor_row=10, option_count=4) is Anchor.TOP
    assert choose_anchor(terminal_rows=16, cursor_row=10, option_count=4) is Anchor.BOTTOM


def test_bottom_offset_counts_footer_and_later_options() -> None:
    assert bottom_offset(3, 4) == FOOTER_LINES
    assert bottom_offset(0, 4) == FOOTER_LINES + 3


def test_render_cache_row_for_both_anchors() -> None:
    cache = RenderCache(anchor=Anchor.TOP, rows={0: 12}, size=(80, 24), valid=True)
    assert cache.row_for(0, 24) == 12
    assert cache.row_for(1, 24) is None
    cache = RenderCache(anchor=Anchor.BOTTOM, rows={0: 6}, size=(80, 24), valid=True)
    assert cache.row_for(0, 24) == 18
    assert cache.row_for(0, 50) == 44
    cache.invalidate()
    assert cache.row_for(0, 24) is None
    assert cache.anchor is None
    assert cache.rows == {}


def test_ample_space_uses_top_anchored_rows() -> None:
    screen = FakeScreen(rows=40)
    _, session = _render(screen)
    cache = session.state.render_cache
    assert cache.valid is True
    assert cache.anchor is Anchor.TOP
    assert cache.size == (80, 40)
    start = HEADER_LINES + 1
    assert cache.rows == {0: start, 1: start + 1, 2: start + 2, 3: start + 3}


def test_small_screen_uses_bottom_anchored_offsets() -> None:
    screen = FakeScreen(rows=10)
    _, session = _render(screen)
    cache = session.state.render_cache
    assert cache.anchor is Anchor.BOTTOM
    assert cache.rows == {0: 6, 1: 5, 2: 4, 3: 3}
    assert [cache.row_for(index, 10) for index in range(4)] == [4, 5, 6, 7]
    assert screen.row == 10


def test_focus_move_is_a_partial_repaint_in_top_mode() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    screen.clear_output()

    previous = session.state.focus
    current = session.state.move_focus(FocusDirection.DOWN)
    assert renderer.refresh(session, {previous, current}) is True

    output = screen.output()
    assert CLEAR_SCREEN not in output
    start = HEADER_LINES + 1
    assert move_to(start) + CLEAR_LINE + "  A. [ ] Option a" in output
    assert move_to(start + 1) + CLEAR_LINE + "> B. [ ] Option b" in output


def test_toggle_is_a_partial_repaint_in_bottom_mode() -> None:
    screen = FakeScreen(rows=10)
    renderer, session = _render(screen)
    screen.clear_output()

    index = session.state.toggle_current()
    assert renderer.refresh(session, {index}) is True
    assert screen.output() == move_to(4) + CLEAR_LINE + "> A. [x] Option a"


def test_bottom_rows_follow_the_current_bottom_edge() -> None:
    screen = FakeScreen(rows=10)
    renderer, session = _render(screen)
    session.state.render_cache.size = (80, 12)
    screen.rows = 12
    screen.clear_output()
    assert renderer.repaint_options(session, {3}) is True
    assert screen.output().startswith(move_to(9))


def test_size_change_invalidates_and_falls_back() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    screen.columns = 100
    assert renderer.repaint_options(session, {0}) is False
    assert session.state.render_cache.valid is False

    screen.clear_output()
    assert renderer.refresh(session, {0}) is False
    assert CLEAR_SCREEN in screen.output()
    assert session.state.render_cache.size == (100, 40)


def test_uncached_index_falls_back_to_full_repaint() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    assert renderer.repaint_options(session, {7}) is False


def test_resize_from_small_to_ample_switches_to_top() -> None:
    screen = FakeScreen(rows=10)
    renderer, session = _render(screen)
    assert session.state.render_cache.anchor is Anchor.BOTTOM

    screen.rows = 60
    screen.clear_output()
    renderer.resize(session)

    cache = session.state.render_cache
    assert screen.output().startswith(CLEAR_SCREEN)
    assert cache.anchor is Anchor.TOP
    assert cache.size == (80, 60)
    assert cache.rows[0] == HEADER_LINES + 1


def test_resize_from_ample_to_small_switches_to_bottom() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    screen.rows = 8
    renderer.resize(session)
    assert session.state.render_cache.anchor is Anchor.BOTTOM


def test_terminal_without_cursor_queries_always_repaints_fully() -> None:
    screen = FakeScreen(rows=40, supports_partial=False)
    renderer, session = _render(screen)
    assert session.state.render_cache.valid is False
    assert screen.cursor_queries == 0

    screen.clear_output()
    session.state.move_focus(FocusDirection.DOWN)
    assert renderer.refresh(session, {0, 1}) is False
    assert screen.output().startswith(CLEAR_SCREEN)


def test_cursor_query_failure_mid_draw_leaves_cache_invalid() -> None:
    class FlakyScreen(FakeScreen):
        def cursor_row(self) -> int | None:
            self.cursor_queries += 1
            if self.cursor_queries > 2:
                return None
            return self.row

    screen = FlakyScreen(rows=40)
    _, session = _render(screen)
    assert session.state.render_cache.valid is False


def test_option_lines_show_glyphs_only_after_first_attempt() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    first = renderer.option_line(session, 0, 80)
    assert CORRECT_GLYPH not in first and WRONG_GLYPH not in first

    session.state.reveal(session.question)
    assert renderer.option_line(session, 0, 80).endswith(CORRECT_GLYPH)
    assert renderer.option_line(session, 1, 80).endswith(WRONG_GLYPH)

    session.state.phase = AnswerPhase.FINAL_ANSWER
    assert renderer.option_line(session, 3, 80).endswith(WRONG_GLYPH)


def test_option_letters_follow_display_order() -> None:
    screen = FakeScreen(rows=40)
    renderer, session = _render(screen)
    session.state.displayed_options.reverse()
    assert renderer.option_line(session, 0, 80) == "> A. [ ] Option d"


def test_long_option_is_clipped_to_width() -> None:
    screen = FakeScreen(columns=20, rows=40)
    renderer, session = _render(screen)
    line = renderer.option_line(session, 0, 20)
    assert len(line) <= 19


def test_footer_has_fixed_height_in_every_phase() -> None:
    renderer, session = _render(FakeScreen())
    for phase in AnswerPhase:
        session.state.phase = phase
        assert len(renderer.footer_lines(session)) == FOOTER_LINES


def test_explanation_page_lists_defaults_and_key_points() -> None:
    screen = FakeScreen(rows=40)
    renderer = Renderer(screen, color=False)
    question = make_question(explained=("c", "d"))
    session = QuizSession(topic="Options", question=question, state=QuestionState.for_question(question, FirstChooser()))
    renderer.full_repaint(session)
    screen.clear_output()
    renderer.show_explanation(session)
    output = screen.output()
    assert "A. Option a - No detailed explanation." in output
    assert "B. Option b - This option is not an issue." in output
    assert "C. Option c - Because c" in output
    assert "Point two" in output
    assert session.state.render_cache.valid is False


def _wide_session() -> QuizSession:
    options = (
        QuizOption(id="a", content="変数名が分かりにくい" * 3, is_correct=True),
        QuizOption(id="b", content="plain text option that runs on and on", is_correct=False),
    )
    question = Question(id="w", title="Wide", description="d", code="x = 1", options=options)
    return QuizSession(topic="Options", question=question, state=QuestionState.for_question(question, FirstChooser()))


def test_display_width_counts_wide_and_combining_characters() -> None:
    assert display_width("abc") == 3
    assert display_width("変数") == 4
    assert display_width("e\u0301") == 1


def test_wide_option_text_fits_terminal_width() -> None:
    renderer = Renderer(FakeScreen(columns=30), color=False)
    session = _wide_session()
    line = renderer.option_line(session, 0, 30)
    assert display_width(line) <= 29
    assert line.endswith("…")


def test_composed_line_never_exceeds_width_on_narrow_terminals() -> None:
    renderer = Renderer(FakeScreen(columns=4), color=False)
    session = _wide_session()
    session.state.reveal(session.question)
    for columns in range(1, 40):
        for index in range(session.state.option_count):
            line = renderer.option_line(session, index, columns)
            assert display_width(line) <= max(columns - 1, 0)


def test_glyph_is_dropped_when_prefix_and_glyph_do_not_fit() -> None:
    renderer = Renderer(FakeScreen(columns=12), color=False)
    session = _wide_session()
    session.state.reveal(session.question)
    line = renderer.option_line(session, 0, 12)
    assert CORRECT_GLYPH not in line
    assert line.startswith("> A. [ ] ")
