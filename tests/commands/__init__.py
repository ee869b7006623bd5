"""Tests for command implementation modules.

Test Files and Coverage:
========================

| Test File          | Test Classes                 | Tested Constructs            | Tested Functionalities                          |
|--------------------|------------------------------|------------------------------|-------------------------------------------------|
| test_classify.py   | ClassifierTest               | Classifier.classify()        | Precedence, path variants, digests, I/O errors  |
|                    | LanesTest                    | lanes()                      | Residue-class striding, partition completeness  |
|                    | DispatchTest                 | dispatch()                   | Exactly-once, worker count independence, abort  |
|                    | ClassificationSummaryTest    | ClassificationSummary        | Counting, merging                               |
"""
