import pytest

from flexihmm import train

SIMPLE_TAGS = [
    "DET N V DET N",
    "DET N V",
    "NP V NP",
    "DET ADJ N V",
]

SIMPLE_SENTENCES = [
    "the dog saw the cat",
    "the cat ran",
    "bob saw alice",
    "a big dog barked",
]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep config and model directories inside the test's tmp dir."""
    config_dir = tmp_path / "flexihmm-config"
    monkeypatch.setenv("FLEXIHMM_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("FLEXIHMM_MODELS_DIR", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    return config_dir


@pytest.fixture
def simple_corpus():
    return [(tags.split(" "), words.split(" ")) for tags, words in zip(SIMPLE_TAGS, SIMPLE_SENTENCES)]


@pytest.fixture
def simple_model(simple_corpus):
    return train(simple_corpus)


@pytest.fixture
def corpus_files(tmp_path):
    tags_file = tmp_path / "train-tags.txt"
    sentences_file = tmp_path / "train-sentences.txt"
    tags_file.write_text("\n".join(SIMPLE_TAGS) + "\n", encoding="utf-8")
    sentences_file.write_text("\n".join(SIMPLE_SENTENCES) + "\n", encoding="utf-8")
    return tags_file, sentences_file
