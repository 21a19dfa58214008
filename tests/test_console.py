from flexihmm import train
from flexihmm.console import run_console


def _scripted(lines):
    remaining = list(lines)

    def _input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return _input


def test_console_tags_until_quit():
    model = train([("D N V", "the dog runs")])
    output = []
    tagged = run_console(model, input_fn=_scripted(["the dog runs", "  ", "q", "never read"]), output_fn=output.append)
    assert tagged == 1
    assert "D N V" in output


def test_console_reports_decode_failures_and_continues():
    model = train([("D N V", "the dog runs")])
    output = []
    tagged = run_console(
        model,
        input_fn=_scripted(["the dog runs fast", "The Dog Runs", "q"]),
        output_fn=output.append,
    )
    assert tagged == 1
    assert any(line.startswith("[flexihmm] Could not tag sentence") for line in output)
    assert "D N V" in output


def test_console_stops_on_eof():
    model = train([("D N V", "the dog runs")])
    assert run_console(model, input_fn=_scripted([]), output_fn=lambda *args: None) == 0
