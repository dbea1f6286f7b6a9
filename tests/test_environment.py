import pytest

from mpsl.builtin_function import UserFunction
from mpsl.environment import Environment
from mpsl.errors import MPSLError
from mpsl.interpreter import run
from mpsl.types import GroupVal


def test_define_and_lookup_through_parents():
    root = Environment()
    root.define_variable('x', 1.0)
    child = Environment(root)
    assert child.get_variable('x') == 1.0
    child.define_variable('x', 2.0)
    assert child.get_variable('x') == 2.0
    assert root.get_variable('x') == 1.0


def test_assign_updates_defining_scope():
    root = Environment()
    root.define_variable('x', 1.0)
    Environment(root).assign_variable('x', 5.0)
    assert root.get_variable('x') == 5.0


def test_duplicate_definitions():
    env = Environment()
    env.define_variable('x', None)
    with pytest.raises(MPSLError, match="Variable 'x' has already been defined."):
        env.define_variable('x', 1.0)
    env.define_function('f', UserFunction('f', (), None, env))
    with pytest.raises(MPSLError, match="Function '@f' has already been defined."):
        env.define_function('f', UserFunction('f', (), None, env))


def test_undefined_names():
    env = Environment()
    with pytest.raises(MPSLError, match="Undefined variable 'nope'."):
        env.get_variable('nope')
    with pytest.raises(MPSLError, match="Undefined function '@nope'."):
        env.get_function('nope')
    with pytest.raises(MPSLError, match="Undefined group 'Nope'."):
        env.get_group('Nope')


def test_functions_fall_back_to_natives():
    env = Environment(Environment())
    assert env.get_function('print').name == 'print'


def test_variables_and_groups_share_names():
    env = Environment()
    env.define_group('A', GroupVal('A', Environment(env)))
    with pytest.raises(MPSLError, match="Cannot define a variable with the same name as the group 'A'."):
        env.define_variable('A', 1.0)
    env.define_variable('b', 1.0)
    with pytest.raises(MPSLError, match="Cannot define a group with the same name as the variable 'b'."):
        env.define_group('b', GroupVal('b', Environment(env)))


def test_merge_hides_private_entries():
    other = Environment()
    other.define_variable('hidden', 1.0)
    other.define_variable('shown', 2.0, public=True)
    env = Environment()
    env.merge_from(other)
    assert env.get_variable('shown') == 2.0
    with pytest.raises(MPSLError, match="Variable 'hidden' is inaccessible."):
        env.get_variable('hidden')


def test_merge_rejects_existing_names():
    other = Environment()
    other.define_variable('x', 1.0, public=True)
    env = Environment()
    env.define_variable('x', 2.0)
    with pytest.raises(MPSLError, match="Variable 'x' has already been defined."):
        env.merge_from(other)


def test_group_members_respect_visibility():
    env = Environment()
    group_env = Environment(env)
    group_env.define_variable('open', 1.0, public=True)
    group_env.define_variable('closed', 2.0)
    assert group_env.member('variables', 'open', env).value == 1.0
    assert group_env.member('variables', 'closed', Environment(group_env)).value == 2.0
    with pytest.raises(MPSLError, match="Variable 'closed' is inaccessible."):
        group_env.member('variables', 'closed', env)


def test_merged_group_keeps_its_scope():
    library = Environment()
    library.define_variable('secret', 1.0)
    group_env = Environment(library)
    library.define_group('G', GroupVal('G', group_env), public=True)
    env = Environment()
    env.merge_from(library)
    group = env.get_group('G')
    assert group.env is group_env
    assert Environment(group.env).get_variable('secret') == 1.0


def test_read_before_declaration(capsys):
    result = run('fn @show => @print x\n1 -> var x\n@show!\n')
    assert not result.success
    assert capsys.readouterr().out.splitlines() == [
        "In function '@show', called from [L3, C1]:",
        "[L1, C20] Runtime Error: Variable 'x' is used before its declaration.",
    ]
