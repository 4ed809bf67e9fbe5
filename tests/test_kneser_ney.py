import itertools

import pytest

from codeswitch_lm.errors import UnknownSymbolError
from codeswitch_lm.lm import NgramCounter, SingleLanguageModel
from codeswitch_lm.lm.kneser_ney import DEFAULT_DISCOUNT, estimate_discounts, kneser_ney_levels
from codeswitch_lm.symbols import SymbolTable


def _fit(text: str, order: int, **kwargs) -> SingleLanguageModel:
    table = SymbolTable()
    counter = NgramCounter(table, order)
    counter.add(list(text))
    return SingleLanguageModel(table, counter.counts(), **kwargs)


def test_hand_computed_bigram_probabilities() -> None:
    model = _fit("aab", 2, power=1.0, discounts=[0.5])
    a, b = model.symbol_table.id_of("a"), model.symbol_table.id_of("b")

    # Continuation base: "a" follows two distinct symbols, "b" one.
    assert model.score_next([b], a) == pytest.approx(2 / 3)
    assert model.score_next([a], a) == pytest.approx(7 / 12)
    assert model.score_next([a], b) == pytest.approx(5 / 12)
    # The empty context is padded with the boundary symbol.
    assert model.score_next([], a) == pytest.approx(5 / 6)
    assert model.score_next([], a) == model.score_next([model.symbol_table.id_of(" ")], a)


def test_power_sharpens_and_renormalizes() -> None:
    model = _fit("aab", 2, power=2.0, discounts=[0.5])
    a, b = model.symbol_table.id_of("a"), model.symbol_table.id_of("b")

    assert model.score_next([a], a) == pytest.approx(49 / 74)
    assert model.score_next([a], b) == pytest.approx(25 / 74)


def test_continuation_levels() -> None:
    table = SymbolTable()
    counter = NgramCounter(table, 2)
    counter.add(list("aab"))
    levels = kneser_ney_levels(counter.counts())

    a, b = table.id_of("a"), table.id_of("b")
    assert levels[0] == {(): {a: 2, b: 1}}
    assert levels[1] == counter.counts().table


def test_estimate_discounts() -> None:
    levels = [
        {(): {1: 1}},
        {(1,): {2: 1, 3: 2}, (2,): {3: 1}},
        {(1, 2): {3: 3}},
    ]

    assert estimate_discounts(levels) == (pytest.approx(0.5), DEFAULT_DISCOUNT)


def test_distribution_sums_to_one_over_active_symbols() -> None:
    model = _fit("abracadabra cadabra abra ", 4)
    symbols = range(model.symbol_table.size())

    contexts = [[], [0], list(itertools.islice(symbols, 3)), [4, 4, 4, 4, 4]]
    contexts += [list(context) for context in itertools.product(symbols, repeat=3)][:50]
    for context in contexts:
        distribution = model.distribution(context)
        assert set(distribution) == model.active_symbols
        assert sum(distribution.values()) == pytest.approx(1.0)
        assert all(prob > 0.0 for prob in distribution.values())


def test_power_preserves_ranking() -> None:
    flat = _fit("abracadabra cadabra ", 3, power=1.0)
    sharp = _fit("abracadabra cadabra ", 3, power=4.0)
    context = [flat.symbol_table.id_of("a"), flat.symbol_table.id_of("b")]

    flat_dist = flat.distribution(context)
    sharp_dist = sharp.distribution(context)

    assert sorted(flat_dist, key=flat_dist.get) == sorted(sharp_dist, key=sharp_dist.get)
    assert max(sharp_dist.values()) > max(flat_dist.values())


def test_interned_but_unseen_symbol_scores_zero() -> None:
    table = SymbolTable()
    english = NgramCounter(table, 2)
    english.add(list("ab ba"))
    NgramCounter(table, 2).add(list("z"))
    table.lock()
    model = SingleLanguageModel.fit(table, english.counts())

    assert model.score_next([table.id_of("a")], table.id_of("z")) == 0.0
    assert table.id_of("z") not in model.distribution([])


def test_never_interned_symbol_raises() -> None:
    model = _fit("ab ba", 3)
    unknown = model.symbol_table.size()

    with pytest.raises(UnknownSymbolError):
        model.score_next([], unknown)
    with pytest.raises(UnknownSymbolError):
        model.score_next([unknown], 0)


def test_parameter_validation() -> None:
    with pytest.raises(ValueError):
        _fit("ab", 2, power=0.0)
    with pytest.raises(ValueError):
        _fit("ab", 3, discounts=[0.5])
    with pytest.raises(ValueError):
        _fit("ab", 2, discounts=[0.0])


def test_unigram_model_ignores_context() -> None:
    model = _fit("aab", 1, power=1.0)
    a = model.symbol_table.id_of("a")

    assert model.score_next([], a) == pytest.approx(2 / 3)
    assert model.score_next([a, a], a) == pytest.approx(2 / 3)
