import numpy as np
import pytest

from codeswitch_lm.errors import InvalidPriorError, MismatchedVocabularyError
from codeswitch_lm.lm import CodeSwitchModel, NgramCounter, SingleLanguageModel
from codeswitch_lm.symbols import SymbolTable


def _fit_pair() -> tuple[SymbolTable, SingleLanguageModel, SingleLanguageModel]:
    table = SymbolTable()
    first = NgramCounter(table, 2)
    first.add(list("ab ba "))
    second = NgramCounter(table, 2)
    second.add(list("cd dc "))
    table.lock()
    return table, SingleLanguageModel.fit(table, first.counts()), SingleLanguageModel.fit(table, second.counts())


def test_priors_are_normalized(make_model) -> None:
    model = make_model(priors={"en": 3.0, "xx": 1.0})

    assert model.languages == ("en", "xx")
    assert model.prior("en") == pytest.approx(0.75)
    assert model.prior("xx") == pytest.approx(0.25)
    assert model.initial_distribution().sum() == pytest.approx(1.0)


def test_boundary_transitions_split_switch_mass_by_prior(make_model) -> None:
    corpora = {"en": ["ab"], "fr": ["ba"], "de": ["abba"]}
    model = make_model(corpora, p_keep_same_language=0.9, priors={"en": 1.0, "fr": 1.0, "de": 2.0})

    assert model.transition_probability("en", "en", at_boundary=True) == pytest.approx(0.9)
    assert model.transition_probability("en", "de", at_boundary=True) == pytest.approx(0.1 * 2 / 3)
    assert model.transition_probability("en", "fr", at_boundary=True) == pytest.approx(0.1 / 3)
    assert model.transition_probability("de", "en", at_boundary=True) == pytest.approx(0.05)
    np.testing.assert_allclose(model.transition_matrix().sum(axis=1), 1.0)


def test_language_is_fixed_inside_a_word(make_model) -> None:
    model = make_model()

    assert model.transition_probability("en", "en", at_boundary=False) == 1.0
    assert model.transition_probability("en", "xx", at_boundary=False) == 0.0
    assert model.transition_probability(None, "xx", at_boundary=False) == pytest.approx(0.5)


def test_single_language_always_stays(make_model) -> None:
    model = make_model({"en": ["ab ba"]}, p_keep_same_language=0.2)

    assert model.transition_probability("en", "en", at_boundary=True) == 1.0


def test_zero_prior_language_is_never_entered(make_model) -> None:
    model = make_model(p_keep_same_language=0.5, priors={"en": 1.0, "xx": 0.0})

    assert model.transition_probability("en", "xx", at_boundary=True) == 0.0
    assert model.transition_probability("en", "en", at_boundary=True) == 1.0
    assert model.transition_probability("xx", "en", at_boundary=True) == pytest.approx(0.5)


def test_word_boundaries(make_model) -> None:
    model = make_model()
    table = model.symbol_table

    assert model.starts_word([])
    assert model.starts_word([table.id_of("a"), table.id_of(" ")])
    assert not model.starts_word([table.id_of(" "), table.id_of("a")])


def test_score_next_switches_only_after_separator(make_model) -> None:
    model = make_model(p_keep_same_language=0.5)
    table = model.symbol_table
    after_word = [table.id_of("a"), table.id_of("b"), table.id_of(" ")]
    mid_word = [table.id_of("a"), table.id_of("b")]
    c = table.id_of("c")

    expected = 0.5 * model.sub_model("xx").score_next(after_word, c)
    assert model.score_next(after_word, c, "xx", previous_language="en") == pytest.approx(expected)
    assert model.score_next(mid_word, c, "xx", previous_language="en") == 0.0
    assert model.score_next(mid_word, c, "en", previous_language="en") == 0.0


def test_score_next_without_history_uses_prior(make_model) -> None:
    model = make_model(priors={"en": 1.0, "xx": 3.0})
    c = model.symbol_table.id_of("c")

    assert model.score_next([], c, "xx") == pytest.approx(0.75 * model.sub_model("xx").score_next([], c))


def test_compose_rejects_empty_language_map() -> None:
    with pytest.raises(InvalidPriorError):
        CodeSwitchModel.compose({}, SymbolTable.frozen([" "]), 0.9, 2)


def test_compose_rejects_bad_priors() -> None:
    table, first, second = _fit_pair()

    with pytest.raises(InvalidPriorError):
        CodeSwitchModel.compose({"en": (first, -1.0), "xx": (second, 1.0)}, table, 0.9, 2)
    with pytest.raises(InvalidPriorError):
        CodeSwitchModel.compose({"en": (first, 0.0), "xx": (second, 0.0)}, table, 0.9, 2)
    with pytest.raises(InvalidPriorError):
        CodeSwitchModel.compose({"en": (first, float("nan"))}, table, 0.9, 2)
    with pytest.raises(InvalidPriorError):
        CodeSwitchModel.compose({"en": (first, 1.0)}, table, 1.5, 2)


def test_compose_rejects_models_from_another_table() -> None:
    table, first, _ = _fit_pair()
    _, _, foreign = _fit_pair()

    with pytest.raises(MismatchedVocabularyError):
        CodeSwitchModel.compose({"en": (first, 1.0), "xx": (foreign, 1.0)}, table, 0.9, 2)


def test_compose_requires_locked_table() -> None:
    table = SymbolTable()
    counter = NgramCounter(table, 2)
    counter.add(list("ab"))
    model = SingleLanguageModel.fit(table, counter.counts())

    with pytest.raises(MismatchedVocabularyError):
        CodeSwitchModel.compose({"en": (model, 1.0)}, table, 0.9, 2)


def test_compose_rejects_sub_model_of_another_order() -> None:
    table, first, second = _fit_pair()

    with pytest.raises(MismatchedVocabularyError, match="order 2, expected 6"):
        CodeSwitchModel.compose({"en": (first, 1.0), "xx": (second, 1.0)}, table, 0.9, 6)
