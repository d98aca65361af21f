import pytest
from pyfakefs.fake_filesystem_unittest import Patcher

from starterkit.template import ArgsPlaceholder


@pytest.fixture
def fs():
    with Patcher() as patcher:
        yield patcher.fs


@pytest.fixture
def args():
    return ArgsPlaceholder(lib_name="blog", secret="s3cr3t")
