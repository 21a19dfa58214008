import pytest

from flexihmm import DataError
from flexihmm.io_plain import (
    read_parallel_corpus,
    read_sentences,
    read_tag_lines,
    tokenize,
    write_tag_lines,
)


def test_tokenize_splits_on_single_spaces():
    assert tokenize("the dog  runs\n") == ["the", "dog", "runs"]
    assert tokenize("") == []


def test_read_parallel_corpus(corpus_files):
    tags_file, sentences_file = corpus_files
    corpus = read_parallel_corpus(tags_file, sentences_file)
    assert len(corpus) == 4
    assert corpus[0] == (["DET", "N", "V", "DET", "N"], ["the", "dog", "saw", "the", "cat"])


def test_read_parallel_corpus_skips_blank_pairs(tmp_path):
    tags_file = tmp_path / "tags.txt"
    sentences_file = tmp_path / "sentences.txt"
    tags_file.write_text("D N\n\nD V\n", encoding="utf-8")
    sentences_file.write_text("the dog\n\nit runs\n", encoding="utf-8")
    assert read_parallel_corpus(tags_file, sentences_file) == [
        (["D", "N"], ["the", "dog"]),
        (["D", "V"], ["it", "runs"]),
    ]


def test_read_parallel_corpus_rejects_line_count_mismatch(tmp_path):
    tags_file = tmp_path / "tags.txt"
    sentences_file = tmp_path / "sentences.txt"
    tags_file.write_text("D N\nD V\n", encoding="utf-8")
    sentences_file.write_text("the dog\n", encoding="utf-8")
    with pytest.raises(DataError) as excinfo:
        read_parallel_corpus(tags_file, sentences_file)
    assert excinfo.value.path == tags_file


def test_read_parallel_corpus_rejects_one_sided_blank_line(tmp_path):
    tags_file = tmp_path / "tags.txt"
    sentences_file = tmp_path / "sentences.txt"
    tags_file.write_text("D N\n\n", encoding="utf-8")
    sentences_file.write_text("the dog\nit runs\n", encoding="utf-8")
    with pytest.raises(DataError):
        read_parallel_corpus(tags_file, sentences_file)


def test_token_mismatch_is_left_for_training(tmp_path):
    tags_file = tmp_path / "tags.txt"
    sentences_file = tmp_path / "sentences.txt"
    tags_file.write_text("D N V\n", encoding="utf-8")
    sentences_file.write_text("the dog\n", encoding="utf-8")
    assert read_parallel_corpus(tags_file, sentences_file) == [(["D", "N", "V"], ["the", "dog"])]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_sentences(tmp_path / "nope.txt")


def test_read_sentences_blank_handling(tmp_path):
    path = tmp_path / "sentences.txt"
    path.write_text("the dog\n\nbob runs\n", encoding="utf-8")
    assert read_sentences(path) == [["the", "dog"], ["bob", "runs"]]
    assert read_sentences(path, keep_blank=True) == [["the", "dog"], [], ["bob", "runs"]]


def test_write_tag_lines_keeps_alignment(tmp_path):
    path = tmp_path / "out" / "predictions.txt"
    count = write_tag_lines(path, [["D", "N"], None, ["V"]])
    assert count == 3
    assert path.read_text(encoding="utf-8") == "D N\n\nV\n"
    assert read_tag_lines(path) == [["D", "N"], [], ["V"]]
