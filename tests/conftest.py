from warden.pytest.core import *
