from agents.prediction_agent.impute import impute_window, round_half_up


def test_round_half_up_rounds_ties_away_from_zero():
    assert round_half_up(49, 2) == 25    # 24.5
    assert round_half_up(122, 5) == 24   # 24.4
    assert round_half_up(123, 5) == 25   # 24.6
    assert round_half_up(5, 2) == 3      # 2.5 (round() would give 2)
    assert round_half_up(0, 3) == 0


def test_unplayed_games_get_rounded_played_average(make_window):
    window = make_window(
        points=[25, 24, 0],
        rebounds=[10, 7, 0],
        assists=[3, 4, 9],
        minutes=[30, 28, 0],
    )

    result = impute_window(window)

    assert result.imputable is True
    imputed = result.games[2]
    assert imputed.points == 25      # mean 24.5
    assert imputed.rebounds == 9     # mean 8.5
    assert imputed.assists == 4      # mean 3.5
    assert imputed.was_imputed is True
    assert imputed.date == window[2].date
    assert imputed.minutes_played == 0


def test_played_games_pass_through_unchanged(make_window):
    window = make_window(points=[31, 0, 12], minutes=[35, 0, 20])

    result = impute_window(window)

    assert result.games[0] is window[0]
    assert result.games[2] is window[2]
    assert not result.games[0].was_imputed


def test_input_window_not_mutated(make_window):
    window = make_window(points=[20, 0], minutes=[30, 0])
    before = [g.model_dump() for g in window]

    impute_window(window)

    assert [g.model_dump() for g in window] == before
    assert window[1].points == 0
    assert window[1].was_imputed is False


def test_no_played_games_returns_window_unchanged(make_window, caplog):
    window = make_window(points=[0] * 15, minutes=[0] * 15)

    with caplog.at_level("WARNING", logger="prediction_engine"):
        result = impute_window(window)

    assert result.imputable is False
    assert result.games == window
    assert not any(g.was_imputed for g in result.games)
    assert "cannot impute" in caplog.text
