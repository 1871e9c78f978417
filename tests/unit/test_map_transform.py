"""Unit tests for transformations and derived maps."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from fluentmap import Map, MethodRegistry, InvalidArgumentException, InvalidPatternException, configure


class TestMapCallbacks:
    """Test suite for map, filter, walk and reduce."""

    def test_map_keeps_keys(self) -> None:
        """Test that map keeps the keys."""
        m = Map({'a': 1, 'b': 2})
        assert m.map(lambda v: v * 2).all() == {'a': 2, 'b': 4}
        assert m.map(lambda v, k: f'{k}{v}').all() == {'a': 'a1', 'b': 'b2'}
        assert m.all() == {'a': 1, 'b': 2}

    def test_map_with_builtin(self) -> None:
        """Test callbacks without readable signature."""
        assert Map([[1], [1, 2]]).map(len).to_list() == [1, 2]

    def test_filter_without_callback(self) -> None:
        """Test that falsy values are removed."""
        m = Map([0, 1, '', 'a', None, '0', [], Map()])
        assert m.filter().all() == {1: 1, 3: 'a', 5: '0'}

    def test_filter_with_callback(self) -> None:
        """Test filtering by value and key."""
        m = Map({'a': 1, 'b': 2, 'c': 3})
        assert m.filter(lambda v: v > 1).all() == {'b': 2, 'c': 3}
        assert m.filter(lambda v, k: k != 'b').all() == {'a': 1, 'c': 3}

    def test_reject(self) -> None:
        """Test removing items by callback or value."""
        assert Map([1, 2, 3]).reject(lambda v: v == 2).all() == {0: 1, 2: 3}
        assert Map([0, 1, True, '']).reject().all() == {0: 0, 3: ''}
        assert Map(['a', 'b']).reject('a').all() == {1: 'b'}

    def test_walk_recursive(self) -> None:
        """Test that walk rewrites nested values in place."""
        m = Map({'a': 1, 'b': {'c': 2}, 'd': [3]})
        result = m.walk(lambda v, k: v * 10)

        assert result is m
        assert m.all() == {'a': 10, 'b': {'c': 20}, 'd': [30]}

    def test_walk_keeps_nested_map_settings(self) -> None:
        """Test that nested maps keep their separator and custom methods after walking."""
        registry = MethodRegistry()
        registry.register('size', lambda m: m.count())
        inner = Map({'a': {'b': 1}, 'c': 2}, registry=registry).sep('.')

        m = Map({'x': inner}).walk(lambda v: v + 1)

        assert m.get('x').get('a.b') == 2
        assert m.get('x').size() == 2

    def test_walk_none_keeps_value(self) -> None:
        """Test that returning None leaves values unchanged."""
        seen: List[Any] = []
        m = Map({'a': 1, 'b': 2}).walk(lambda v, k: seen.append(k))

        assert seen == ['a', 'b']
        assert m.all() == {'a': 1, 'b': 2}

    def test_walk_with_data_and_flat(self) -> None:
        """Test the data argument and non-recursive walking."""
        assert Map([1, 2]).walk(lambda v, k, d: v + d, 5).to_list() == [6, 7]

        m = Map({'a': [1, 2]}).walk(lambda v: len(v) if isinstance(v, list) else v, recursive=False)
        assert m.all() == {'a': 2}

    def test_reduce_keeps_items(self) -> None:
        """Test that reduce leaves the map unchanged by default."""
        m = Map([1, 2, 3])
        assert m.reduce(lambda carry, v: carry + v, 0) == 6
        assert m.to_list() == [1, 2, 3]

    def test_reduce_receives_keys(self) -> None:
        """Test that the callback receives carry, value and key."""
        m = Map({'a': 1, 'b': 2})
        assert m.reduce(lambda carry, v, k: carry + [k], []) == ['a', 'b']
        assert Map().reduce(lambda carry, v: carry + v) is None

    def test_reduce_drain(self) -> None:
        """Test that draining empties the map."""
        m = Map([1, 2, 3])
        copy = m.copy()

        assert m.reduce(lambda carry, v: carry + v, 0, drain=True) == 6
        assert m.is_empty()
        assert copy.to_list() == [1, 2, 3]

    def test_reduce_drain_setting(self) -> None:
        """Test the global reduce_drains switch."""
        configure(reduce_drains=True)

        m = Map([1, 2])
        assert m.reduce(lambda carry, v: carry + v, 0) == 3
        assert m.is_empty()

        kept = Map([1, 2])
        kept.reduce(lambda carry, v: carry + v, 0, drain=False)
        assert kept.count() == 2

    def test_each(self) -> None:
        """Test iterating until the callback returns False."""
        seen: List[Any] = []
        Map([1, 2, 3]).each(lambda v: seen.append(v) if v < 2 else False)
        assert seen == [1]


class TestMapFlattening:
    """Test suite for collapse, flat and col."""

    def test_collapse_overwrites_integer_keys(self) -> None:
        """Test that collapsing overwrites colliding keys."""
        assert Map([[1, 2], [3]]).collapse().all() == {0: 3, 1: 2}

    def test_collapse_depth(self) -> None:
        """Test limiting the collapse depth."""
        m = Map([{'a': {'b': 1}}, {'c': 2}])
        assert m.collapse(1).all() == {'a': {'b': 1}, 'c': 2}
        assert m.collapse().all() == {'b': 1, 'c': 2}

    def test_flat_depth_zero(self) -> None:
        """Test that depth 0 only renumbers."""
        assert Map({'a': [1], 'b': 2}).flat(0).all() == {0: [1], 1: 2}

    def test_negative_depth(self) -> None:
        """Test that negative depths are rejected."""
        with pytest.raises(InvalidArgumentException):
            Map().collapse(-1)
        with pytest.raises(InvalidArgumentException):
            Map().flat(-1)

    def test_col_values(self) -> None:
        """Test extracting one column."""
        m = Map([{'v': 1, 'n': {'x': 'a'}}, {'w': 2}, {'v': 3, 'n': {'x': 'b'}}])
        assert m.col('v').all() == {0: 1, 1: 3}
        assert m.col('n/x').to_list() == ['a', 'b']

    def test_col_whole_items_by_index(self) -> None:
        """Test keying whole items by a column."""
        m = Map([{'id': 'a', 'v': 1}, {'id': 'b', 'v': 2}, {'id': 'a', 'v': 3}])
        assert m.col(None, 'id').all() == {'a': {'id': 'a', 'v': 3}, 'b': {'id': 'b', 'v': 2}}

    def test_col_numeric_index(self) -> None:
        """Test that numeric index values become integer keys."""
        m = Map([{'id': '5', 'v': 'x'}, {'v': 'y'}])
        assert m.col('v', 'id').all() == {5: 'x', 6: 'y'}


class TestMapDerived:
    """Test suite for methods creating new maps."""

    def test_chunk(self) -> None:
        """Test splitting into chunks."""
        m = Map(['a', 'b', 'c'])
        assert m.chunk(2).all() == {0: ['a', 'b'], 1: ['c']}
        assert m.chunk(2, True).all() == {0: {0: 'a', 1: 'b'}, 1: {2: 'c'}}

        with pytest.raises(InvalidArgumentException):
            m.chunk(0)

    def test_combine(self) -> None:
        """Test using values as keys."""
        assert Map(['a', 'b']).combine([1, 2]).all() == {'a': 1, 'b': 2}

        with pytest.raises(InvalidArgumentException):
            Map(['a']).combine([1, 2])

    def test_count_by(self) -> None:
        """Test counting values."""
        assert Map(['a', 'b', 'a', 1, '1']).count_by().all() == {'a': 2, 'b': 1, 1: 2}
        assert Map(['ab', 'ac', 'b']).count_by(lambda v: v[0]).all() == {'a': 2, 'b': 1}

    def test_duplicates(self) -> None:
        """Test finding repeated values."""
        assert Map([1, 2, 1, 3, 2]).duplicates().all() == {2: 1, 4: 2}

        m = Map([{'id': 1}, {'id': 2}, {'id': 1}])
        assert m.duplicates('id').all() == {2: {'id': 1}}

    def test_except_and_only(self) -> None:
        """Test selecting keys."""
        m = Map({'a': 1, 'b': 2, 'c': 3})
        assert m.except_(['a', 'c']).all() == {'b': 2}
        assert m.only(['c', 'a']).all() == {'a': 1, 'c': 3}
        assert m.count() == 3

    def test_flip(self) -> None:
        """Test exchanging keys and values."""
        assert Map({'a': 'x', 'b': '1', 'c': [1]}).flip().all() == {'x': 'a', 1: 'b'}

    def test_grep(self) -> None:
        """Test filtering by regular expression."""
        m = Map(['ab', 'cd', 'abc', 12])
        assert m.grep('/^ab/').all() == {0: 'ab', 2: 'abc'}
        assert m.grep('/^AB/i').to_list() == ['ab', 'abc']
        assert m.grep('^ab', True).all() == {1: 'cd', 3: 12}
        assert m.grep(r'\d').all() == {3: 12}

    def test_grep_invalid_pattern(self) -> None:
        """Test that invalid expressions raise."""
        with pytest.raises(InvalidPatternException):
            Map(['a']).grep('/(/')

    def test_group_by(self) -> None:
        """Test grouping by column and callback."""
        items = [{'t': 'a', 'v': 1}, {'t': 'b', 'v': 2}, {'t': 'a', 'v': 3}]
        m = Map(items)

        assert m.group_by('t').all() == {'a': {0: items[0], 2: items[2]}, 'b': {1: items[1]}}
        assert m.group_by(lambda item: item['v'] % 2).all() == {1: {0: items[0], 2: items[2]}, 0: {1: items[1]}}
        assert Map([{'x': 1}]).group_by('t').all() == {'': {0: {'x': 1}}}

    def test_if(self) -> None:
        """Test conditional execution."""
        assert Map([1]).if_(True, lambda m: m.map(lambda v: v + 1)).to_list() == [2]
        assert Map([1]).if_(False, None, lambda m: ['x']).to_list() == ['x']
        assert Map([]).if_(lambda m: m.is_empty(), lambda m: ['e']).to_list() == ['e']
        assert Map([1]).if_(False).is_empty()

    def test_nth(self) -> None:
        """Test taking every nth item."""
        m = Map([1, 2, 3, 4, 5])
        assert m.nth(2).all() == {0: 1, 2: 3, 4: 5}
        assert m.nth(2, 1).all() == {1: 2, 3: 4}

        with pytest.raises(InvalidArgumentException):
            m.nth(0)

    def test_pad(self) -> None:
        """Test filling up to a size."""
        assert Map([1, 2]).pad(4).to_list() == [1, 2, None, None]
        assert Map([1, 2]).pad(-4, 0).to_list() == [0, 0, 1, 2]
        assert Map({'a': 1}).pad(2).all() == {'a': 1, 0: None}
        assert Map([1, 2]).pad(1).to_list() == [1, 2]

    def test_partition(self) -> None:
        """Test splitting into groups."""
        m = Map([1, 2, 3])
        assert m.partition(2).all() == {0: {0: 1, 1: 2}, 1: {2: 3}}
        assert m.partition(lambda v: v % 2).all() == {1: {0: 1, 2: 3}, 0: {1: 2}}

        with pytest.raises(InvalidArgumentException):
            m.partition(0)
        with pytest.raises(InvalidArgumentException):
            m.partition('a')

    def test_skip_and_take(self) -> None:
        """Test skipping and taking by number and callback."""
        m = Map([1, 2, 3, 4])
        assert m.skip(2).all() == {2: 3, 3: 4}
        assert m.skip(lambda v: v < 3).all() == {2: 3, 3: 4}
        assert m.take(2).all() == {0: 1, 1: 2}
        assert m.take(2, 1).all() == {1: 2, 2: 3}
        assert m.take(1, lambda v: v < 4).all() == {3: 4}

        with pytest.raises(InvalidArgumentException):
            m.skip([1])
        with pytest.raises(InvalidArgumentException):
            m.take(1, 'a')

    def test_transpose(self) -> None:
        """Test exchanging rows and columns."""
        m = Map([{'a': 1, 'b': 2}, {'a': 3, 'b': 4}])
        assert m.transpose().all() == {'a': [1, 3], 'b': [2, 4]}

    def test_traverse(self) -> None:
        """Test flattening a tree."""
        m = Map([{'id': 1, 'children': [{'id': 2, 'children': []}]}, {'id': 3}])
        assert m.traverse(lambda e, k, level: f"{level}:{e['id']}").to_list() == ['0:1', '1:2', '0:3']
        assert m.traverse().count() == 3

    def test_tree(self) -> None:
        """Test building trees from parent references."""
        nodes = [
            {'id': 1, 'pid': None, 'name': 'a'},
            {'id': 2, 'pid': 1, 'name': 'b'},
            {'id': 3, 'pid': 2, 'name': 'c'},
            {'id': 4, 'pid': None, 'name': 'd'},
        ]
        tree: Dict[Any, Any] = Map(nodes).tree('id', 'pid').all()

        assert list(tree) == [1, 4]
        assert tree[1]['children'][2]['children'][3]['name'] == 'c'
        assert tree[4]['children'] == {}
        assert 'children' not in nodes[0]

    def test_unique(self) -> None:
        """Test removing duplicates."""
        assert Map([1, '1', 2, 1]).unique().all() == {0: 1, 2: 2}
        assert Map([[1], [1], [2]]).unique().all() == {0: [1], 2: [2]}

        m = Map([{'t': 'a', 'v': 1}, {'t': 'b', 'v': 2}, {'t': 'a', 'v': 3}])
        assert m.unique('t').col('v').to_list() == [3, 2]

    def test_where(self) -> None:
        """Test comparing column values."""
        m = Map([{'v': 1}, {'v': '2'}, {'v': 3}, {'x': 4}])
        assert m.where('v', '>', 1).col('v').to_list() == ['2', 3]
        assert m.where('v', '==', 2).col('v').to_list() == ['2']
        assert m.where('v', '===', 2).is_empty()
        assert m.where('v', '-', [1, 2]).col('v').to_list() == [1, '2']
        assert m.where('v', 'in', [1, 3]).col('v').to_list() == [1, 3]
        assert m.where('v', '!=', 1).count() == 2

    def test_zip(self) -> None:
        """Test combining by position."""
        assert Map([1, 2]).zip(['a', 'b', 'c']).to_list() == [[1, 'a'], [2, 'b'], [None, 'c']]

    def test_after_and_before(self) -> None:
        """Test items around a value."""
        m = Map(['a', 'b', 'c'])
        assert m.after('b').all() == {2: 'c'}
        assert m.after('x').is_empty()
        assert m.before('b').all() == {0: 'a'}
        assert m.before('x').count() == 3


class TestMapAffixes:
    """Test suite for prefix and suffix."""

    def test_prefix_nested(self) -> None:
        """Test prefixing nested values."""
        assert Map(['a', ['b']]).prefix('1-').all() == {0: '1-a', 1: ['1-b']}
        assert Map(['a', ['b']]).prefix('1-', 1).all() == {0: '1-a', 1: ['b']}

    def test_suffix_callback(self) -> None:
        """Test a callable suffix receiving value and key."""
        assert Map(['a', None]).suffix(lambda v, k: f'-{k}').to_list() == ['a-0', '-1']


class TestMapAggregates:
    """Test suite for sum, min and max."""

    def test_sum(self) -> None:
        """Test summing values and columns."""
        assert Map([1, '2', 3.5]).sum() == 6.5
        assert Map([{'p': 2}, {'p': 5}]).sum('p') == 7
        assert Map().sum() == 0

    def test_min_max(self) -> None:
        """Test the smallest and largest values."""
        assert Map([3, '10', 2]).max() == '10'
        assert Map([3, '10', 2]).min() == 2
        assert Map([{'p': 2}, {'p': 5}]).max('p') == 5
        assert Map().min() is None


class TestMapHelpers:
    """Test suite for pipe, tap and dump."""

    def test_pipe_and_tap(self) -> None:
        """Test passing the map to callbacks."""
        m = Map([1, 2])
        assert m.pipe(lambda x: x.count()) == 2

        seen: List[Any] = []
        assert m.tap(lambda x: seen.append(x.push(3).count())) is m
        assert seen == [3]
        assert m.count() == 2

    def test_dump(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test printing the items."""
        received: List[Any] = []
        Map({'a': 1}).dump(received.append).dump()

        assert received == [{'a': 1}]
        assert "{'a': 1}" in capsys.readouterr().out
