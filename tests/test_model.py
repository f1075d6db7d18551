#!/usr/bin/env python3
"""
Tests for the n-gram graph builder and random-walk sentence generator.
"""

import random
import pytest

from gramwalk import NGramModel, GramNode, gram_key, EmptyModelError


DOGS_CORPUS = (
    "My many dogs have many fleas I think. "
    "My many fleas have many dogs I think."
)

MIXED_CORPUS = (
    "The cat sat on the mat. The dog sat on the log. "
    "A cat and a dog sat together on the mat. Short. "
    "The cat ran after the dog and the dog ran after the cat."
)


def successor_keys(node):
    return [succ.key for succ in node.successors]


@pytest.fixture
def bigram_model():
    return NGramModel.from_text(DOGS_CORPUS, 2)


@pytest.fixture
def trigram_model():
    return NGramModel.from_text(DOGS_CORPUS, 3)


class TestGramNode:
    """Tests for graph vertices."""

    def test_gram_key_trailing_space(self):
        assert gram_key(["many", "dogs"]) == "many dogs "
        assert gram_key(["x"]) == "x "
        assert gram_key([]) == ""

    def test_node_properties(self):
        node = GramNode(["many", "dogs"])
        assert node.tokens == ("many", "dogs")
        assert node.key == "many dogs "
        assert node.last_token == "dogs"
        assert node.is_sink

    def test_root_has_no_tokens(self, bigram_model):
        assert bigram_model.root.tokens == ()
        assert bigram_model.prefix_root.tokens == ()


class TestConstruction:
    """Tests for graph construction."""

    def test_bigram_root_successors(self, bigram_model):
        # One reference per sentence; both sentences open with "My many"
        assert successor_keys(bigram_model.root) == ["My many ", "My many "]
        assert bigram_model.root.successors[0] is bigram_model.root.successors[1]
        assert bigram_model.num_sentences == 2

    def test_bigram_successors(self, bigram_model):
        many_dogs = bigram_model.get_node(["many", "dogs"])
        many_fleas = bigram_model.get_node(["many", "fleas"])
        assert "dogs have " in successor_keys(many_dogs)
        assert "fleas have " in successor_keys(many_fleas)
        assert successor_keys(many_dogs) == ["dogs have ", "dogs I "]
        assert successor_keys(many_fleas) == ["fleas I ", "fleas have "]

    def test_trigram_root_successors(self, trigram_model):
        assert successor_keys(trigram_model.root) == ["My many dogs ", "My many fleas "]

    def test_trigram_shared_node(self, trigram_model):
        have_many_fleas = trigram_model.get_node(["have", "many", "fleas"])
        dogs_have_many = trigram_model.get_node(["dogs", "have", "many"])
        fleas_have_many = trigram_model.get_node(["fleas", "have", "many"])

        assert dogs_have_many.successors.count(have_many_fleas) == 1
        assert successor_keys(fleas_have_many) == ["have many dogs "]

        predecessors = [
            node for node in trigram_model.iter_nodes()
            if have_many_fleas in node.successors
        ]
        assert predecessors == [dogs_have_many]

    def test_interning_one_node_per_gram(self, bigram_model):
        keys = [node.key for node in bigram_model.iter_nodes()]
        assert len(keys) == len(set(keys))
        # Distinct bigrams of the two sentences
        assert set(keys) == {
            "My many ", "many dogs ", "dogs have ", "have many ", "many fleas ",
            "fleas I ", "I think. ", "fleas have ", "dogs I ",
        }

    def test_multi_edges_preserved(self):
        model = NGramModel.from_text("go a b. go a b. go a c.", 2)
        go_a = model.get_node(["go", "a"])
        assert successor_keys(go_a) == ["a b. ", "a b. ", "a c. "]
        assert go_a.successors[0] is go_a.successors[1]
        assert len(model.root.successors) == 3

    def test_terminal_grams_are_sinks(self, bigram_model):
        assert bigram_model.get_node(["I", "think."]).is_sink

    def test_short_sentence_contributes_nothing(self):
        model = NGramModel.from_text("A b. C d e f.", 3)
        assert model.get_node(["A"]) is None
        assert model.get_node(["A", "b."]) is None
        assert successor_keys(model.root) == ["C d e "]
        assert successor_keys(model.get_node(["C", "d", "e"])) == ["d e f. "]

    def test_corpus_of_only_short_sentences_is_empty(self):
        model = NGramModel.from_text("Hi. Yes. Go now.", 3)
        assert model.is_empty
        assert model.num_nodes == 0

    def test_end_of_file_without_terminator(self):
        model = NGramModel.from_text("x y z", 2)
        node = model.get_node(["y", "z"])
        assert node.is_sink
        assert model.build_sentence() == "y z"

    def test_self_loop(self):
        model = NGramModel.from_text("a a a a", 2)
        node = model.get_node(["a", "a"])
        assert node.successors == [node, node]

    def test_prefix_chain(self, bigram_model):
        my = bigram_model.get_node(["My"])
        my_many = bigram_model.get_node(["My", "many"])
        assert bigram_model.prefix_root.successors == [my, my]
        assert my.successors == [my_many, my_many]

    def test_prefix_nodes_not_reachable_from_root(self, trigram_model):
        for node in trigram_model.iter_nodes():
            assert len(node.tokens) == 3
        partial = [
            node for node in trigram_model.iter_nodes(include_prefixes=True)
            if len(node.tokens) < 3
        ]
        assert sorted(node.key for node in partial) == ["My ", "My many "]

    def test_unigram_model(self):
        model = NGramModel.from_text("one two three. four five.", 1)
        assert successor_keys(model.root) == ["one ", "four "]
        assert successor_keys(model.get_node(["two"])) == ["three. "]

    @pytest.mark.parametrize("n", [0, -1, 1.5, "2", True])
    def test_invalid_gram_size(self, n):
        with pytest.raises(ValueError, match="positive integer"):
            NGramModel.from_text(DOGS_CORPUS, n)

    def test_from_file(self, tmp_path):
        corpus = tmp_path / "dogs.txt"
        corpus.write_text(DOGS_CORPUS)
        model = NGramModel.from_file(corpus, 2)
        assert model.name == "dogs"
        assert model.num_sentences == 2

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(OSError):
            NGramModel.from_file(tmp_path / "missing.txt", 2)

    def test_from_file_closes_on_error(self, tmp_path, monkeypatch):
        """The corpus file is closed even when construction fails."""
        corpus = tmp_path / "dogs.txt"
        corpus.write_text(DOGS_CORPUS)
        handles = []

        def tracking_open(*args, **kwargs):
            handle = open(*args, **kwargs)
            handles.append(handle)
            return handle

        monkeypatch.setattr("gramwalk.model.open", tracking_open, raising=False)
        with pytest.raises(ValueError):
            NGramModel.from_file(corpus, 0)

        assert len(handles) == 1
        assert handles[0].closed

    def test_from_file_closes_on_success(self, tmp_path, monkeypatch):
        corpus = tmp_path / "dogs.txt"
        corpus.write_text(DOGS_CORPUS)
        handles = []

        def tracking_open(*args, **kwargs):
            handle = open(*args, **kwargs)
            handles.append(handle)
            return handle

        monkeypatch.setattr("gramwalk.model.open", tracking_open, raising=False)
        NGramModel.from_file(corpus, 2)
        assert handles[0].closed

    def test_consumes_any_iterable(self):
        model = NGramModel(iter(["a", "b", "c."]), 2, name="iter")
        assert model.name == "iter"
        assert successor_keys(model.root) == ["a b "]


class TestGraphInvariants:
    """Structural properties that hold for any corpus."""

    @pytest.mark.parametrize("n", [1, 2, 3, 4])
    def test_every_node_has_n_tokens(self, n):
        model = NGramModel.from_text(MIXED_CORPUS, n)
        assert model.num_nodes > 0
        for node in model.iter_nodes():
            assert len(node.tokens) == n

    @pytest.mark.parametrize("n", [1, 2, 3, 4])
    def test_edges_shift_by_one_token(self, n):
        model = NGramModel.from_text(MIXED_CORPUS, n)
        for node in model.iter_nodes():
            for succ in node.successors:
                assert succ.tokens[:-1] == node.tokens[1:]

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_root_successors_open_sentences(self, n):
        model = NGramModel.from_text(MIXED_CORPUS, n)
        sentences = [s.split() for s in MIXED_CORPUS.split(". ")]
        openings = {tuple(words[:n]) for words in sentences if len(words) > n}
        assert {node.tokens for node in model.root.successors} <= openings

    def test_edge_count(self, bigram_model):
        # 2 root edges + 6 transitions per sentence
        assert bigram_model.num_edges == 2 + 12


class TestWalker:
    """Tests for random-walk generation."""

    def test_walk_ends_at_sink(self, bigram_model):
        for seed in range(20):
            path = bigram_model.walk(rng=random.Random(seed))
            assert path[-1].is_sink
            assert path[0] in bigram_model.root.successors

    def test_walk_follows_edges(self, trigram_model):
        for seed in range(20):
            path = trigram_model.walk(rng=random.Random(seed))
            for a, b in zip(path, path[1:]):
                assert b in a.successors

    def test_token_count_equals_walk_length(self):
        model = NGramModel.from_text(MIXED_CORPUS, 2)
        for seed in range(20):
            path = model.walk(rng=random.Random(seed))
            sentence = model.build_sentence(rng=random.Random(seed))
            assert len(sentence.split()) == len(path)

    def test_sentence_omits_opening_tokens(self):
        model = NGramModel.from_text("My many dogs have fleas.", 3)
        assert model.build_sentence() == "dogs have fleas."

    def test_full_start_includes_opening(self):
        model = NGramModel.from_text("My many dogs have fleas.", 3)
        assert model.build_sentence(full_start=True) == "My many dogs have fleas."

    def test_sentence_ends_with_terminal(self, bigram_model):
        for seed in range(10):
            assert bigram_model.build_sentence(rng=random.Random(seed)).endswith("think.")

    def test_deterministic_given_seed(self):
        model = NGramModel.from_text(MIXED_CORPUS, 2)
        first = [model.build_sentence(rng=random.Random(7)) for _ in range(5)]
        second = [model.build_sentence(rng=random.Random(7)) for _ in range(5)]
        assert first == second

    def test_global_random_seed(self):
        model = NGramModel.from_text(MIXED_CORPUS, 2)
        random.seed(11)
        first = [model.build_sentence() for _ in range(5)]
        random.seed(11)
        second = [model.build_sentence() for _ in range(5)]
        assert first == second

    def test_max_words_bounds_cycles(self):
        model = NGramModel.from_text("a a a a", 2)
        assert model.build_sentence(max_words=5) == "a a a a a"
        assert len(model.walk(max_words=50)) == 50

    def test_invalid_max_words(self, bigram_model):
        with pytest.raises(ValueError):
            bigram_model.walk(max_words=0)

    def test_empty_model_raises(self):
        model = NGramModel.from_text("Too. Short.", 2)
        with pytest.raises(EmptyModelError):
            model.build_sentence()
        with pytest.raises(ValueError):
            model.build_sentence(full_start=True)

    def test_successor_choice_is_frequency_weighted(self):
        model = NGramModel.from_text("go a b. go a b. go a b. go a c.", 2)
        rng = random.Random(3)
        endings = [model.build_sentence(rng=rng) for _ in range(400)]
        b_count = endings.count("a b.")
        c_count = endings.count("a c.")
        assert b_count + c_count == 400
        assert b_count > 2 * c_count


class TestTeardown:
    """Tests for closing a model."""

    def test_close_breaks_cycles(self):
        model = NGramModel.from_text("a a a a. b a a b.", 2)
        nodes = list(model.iter_nodes(include_prefixes=True))
        model.close()
        assert model.closed
        assert all(node.is_sink for node in nodes)
        assert model.root.is_sink and model.prefix_root.is_sink

    def test_closed_model_cannot_generate(self, bigram_model):
        bigram_model.close()
        with pytest.raises(EmptyModelError):
            bigram_model.build_sentence()

    def test_close_is_idempotent(self, bigram_model):
        bigram_model.close()
        bigram_model.close()

    def test_context_manager(self):
        with NGramModel.from_text(DOGS_CORPUS, 2) as model:
            assert model.build_sentence()
        assert model.closed

    def test_repr(self, bigram_model):
        bigram_model.name = "dogs"
        assert repr(bigram_model) == "NGramModel(name='dogs', n=2, sentences=2)"
