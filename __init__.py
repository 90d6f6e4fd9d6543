"""
Weighted decision trees and AdaBoost.M1

Decision trees grown from weighted, labelled records by weighted information
gain over mixed discrete and continuous attributes, and an AdaBoost.M1
ensemble that boosts any weak classifier generator, decision stumps by
default, with either continuous reweighting or weighted resampling between
rounds.
"""
