# Copyright (c) 2020, 2021, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

import sys
import importlib

entrypoints = {
    "operator": ".operator_main",
}

if len(sys.argv) > 1 and sys.argv[1] in entrypoints:
    ret = 0
    try:
        mod = importlib.import_module(entrypoints[sys.argv[1]], "mongodboperator")
        # don't pass the name of the module, thus [2:] istead of [1:]
        ret = mod.main(sys.argv[2:])  # type: ignore

    except Exception as exc:
        print(f"Exception happened in entrypoint {sys.argv[1]}. The message is: {exc}")
        ret = 1
    sys.exit(ret)
elif len(sys.argv) > 1 and sys.argv[1] == "pytest":
    import pytest
    sys.exit(pytest.main(sys.argv[2:]))
else:
    print("Invalid args:", sys.argv)
    sys.exit(1)
