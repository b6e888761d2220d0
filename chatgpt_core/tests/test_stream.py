from chatgpt_core.providers.stream import iter_event_values, last_event_value


def test_iter_event_values_stops_at_done():
    lines = ['data: {"a": 1}', 'data: {"a": 2}', "data: [DONE]", 'data: {"a": 3}']
    assert list(iter_event_values(lines)) == ['{"a": 1}', '{"a": 2}']


def test_iter_event_values_splits_on_first_separator_only():
    assert list(iter_event_values(['data: {"text": "a: b"}'])) == ['{"text": "a: b"}']


def test_iter_event_values_strips_trailing_newline():
    assert list(iter_event_values(['data: {"a": 1}\n', 'data: {"a": 2}\r\n'])) == ['{"a": 1}', '{"a": 2}']


def test_skipped_lines_do_not_replace_candidate():
    lines = ['data: {"a": 1}', "", ":", "retry 3000", "data:{}"]
    assert last_event_value(lines) == '{"a": 1}'


def test_last_event_value_empty_when_nothing_captured():
    assert last_event_value([]) == ""
    assert last_event_value(["data: [DONE]"]) == ""


def test_iter_event_values_is_lazy():
    consumed = []

    def lines():
        for line in ['data: {"a": 1}', "data: [DONE]", "data: never"]:
            consumed.append(line)
            yield line

    assert list(iter_event_values(lines())) == ['{"a": 1}']
    assert consumed == ['data: {"a": 1}', "data: [DONE]"]
