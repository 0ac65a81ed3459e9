import sys

# test_very_deep_tree builds a ~1100-level directory; pytest's tmp_path
# cleanup uses recursive shutil.rmtree, which needs headroom above the default.
if sys.getrecursionlimit() < 5000:
    sys.setrecursionlimit(5000)
