import pytest

from flexihmm.__main__ import main
from flexihmm.model_storage import get_default_penalty, load_model


@pytest.fixture
def trained_model(tmp_path, corpus_files):
    tags_file, sentences_file = corpus_files
    model_path = tmp_path / "model.json"
    assert main(["train", "--tags", str(tags_file), "--sentences", str(sentences_file), "--output", str(model_path)]) == 0
    return model_path


def test_train_writes_model(trained_model):
    assert trained_model.exists()
    assert load_model(trained_model).sentence_count == 4


def test_train_with_explicit_penalty(tmp_path, corpus_files):
    tags_file, sentences_file = corpus_files
    model_path = tmp_path / "penalized.json"
    code = main([
        "train", "--tags", str(tags_file), "--sentences", str(sentences_file),
        "--output", str(model_path), "--penalty", "-100",
    ])
    assert code == 0
    assert load_model(model_path).penalty == -100.0


def test_tag_writes_aligned_predictions(tmp_path, trained_model):
    sentences = tmp_path / "test.txt"
    sentences.write_text("the dog ran\n\nbob saw alice\n", encoding="utf-8")
    output = tmp_path / "predictions.txt"
    assert main(["tag", str(sentences), "--model", str(trained_model), "--output", str(output)]) == 0
    assert output.read_text(encoding="utf-8") == "DET N V\n\nNP V NP\n"


def test_tag_to_stdout(tmp_path, trained_model, capsys):
    sentences = tmp_path / "test.txt"
    sentences.write_text("the cat ran\n", encoding="utf-8")
    assert main(["tag", str(sentences), "--model", str(trained_model)]) == 0
    assert capsys.readouterr().out == "DET N V\n"


def test_check_prints_report(tmp_path, capsys):
    gold = tmp_path / "gold.txt"
    pred = tmp_path / "pred.txt"
    gold.write_text("DET N V\n", encoding="utf-8")
    pred.write_text("DET N N\n", encoding="utf-8")
    assert main(["check", "--gold", str(gold), "--pred", str(pred)]) == 0
    out = capsys.readouterr().out
    assert "Percentage accuracy:     66.67%" in out


def test_run_pipeline(tmp_path, corpus_files, capsys):
    tags_file, sentences_file = corpus_files
    test_tags = tmp_path / "test-tags.txt"
    test_sentences = tmp_path / "test-sentences.txt"
    test_tags.write_text("DET N V\nNP V DET N\n", encoding="utf-8")
    test_sentences.write_text("the dog ran\nbob saw the cat\n", encoding="utf-8")
    predictions = tmp_path / "predictions" / "out.txt"
    code = main([
        "run",
        "--train-tags", str(tags_file),
        "--train-sentences", str(sentences_file),
        "--test-tags", str(test_tags),
        "--test-sentences", str(test_sentences),
        "--predictions", str(predictions),
    ])
    assert code == 0
    assert predictions.read_text(encoding="utf-8") == "DET N V\nNP V DET N\n"
    assert "Percentage accuracy:     100.00%" in capsys.readouterr().out


def test_train_reports_mismatched_data(tmp_path, capsys):
    tags_file = tmp_path / "tags.txt"
    sentences_file = tmp_path / "sentences.txt"
    tags_file.write_text("D N V\n", encoding="utf-8")
    sentences_file.write_text("the dog\n", encoding="utf-8")
    code = main(["train", "--tags", str(tags_file), "--sentences", str(sentences_file), "--output", str(tmp_path / "m.json")])
    assert code == 1
    assert "[flexihmm] Error:" in capsys.readouterr().err
    assert not (tmp_path / "m.json").exists()


def test_missing_model_file(tmp_path, capsys):
    sentences = tmp_path / "test.txt"
    sentences.write_text("the dog\n", encoding="utf-8")
    assert main(["tag", str(sentences), "--model", str(tmp_path / "missing.json")]) == 1
    assert "File not found" in capsys.readouterr().err


def test_config_command(tmp_path, capsys):
    assert main(["config", "--set-default-penalty", "-42"]) == 0
    assert get_default_penalty() == -42.0
    assert main(["config", "--show"]) == 0
    assert "Default penalty:  -42.0" in capsys.readouterr().out
    assert main(["config", "--set-default-penalty", "3"]) == 1


def test_no_task_is_an_error():
    with pytest.raises(SystemExit):
        main([])


def test_tag_rejects_inconsistent_model_file(tmp_path, capsys):
    model_path = tmp_path / "broken.json"
    model_path.write_text(
        '{"format": "flexihmm-bigram", "penalty": -50, "transition_counts": {"#": {"d": 1}}, "emission_counts": {}}',
        encoding="utf-8",
    )
    sentences = tmp_path / "test.txt"
    sentences.write_text("the\n", encoding="utf-8")
    assert main(["tag", str(sentences), "--model", str(model_path)]) == 1
    assert "[flexihmm] Error:" in capsys.readouterr().err
