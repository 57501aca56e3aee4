#!/usr/bin/env python3
"""
Threshold-swept evaluation of GO predictions against reference annotations.

example usage:
    pfpeval --ontology-terms MFO_terms.txt --ontology-edges MFO_edges.tsv \
        --pred BLAST_prediction.tsv --truth MFO_annotation.tsv \
        --target MFO_benchmark.txt --centric seq --metric fmax
    pfpeval ... --centric term --metric pr --eval-mode partial --out term_pr.tsv
"""

import argparse
import sys

import numpy as np
import pandas as pd

from pfpeval.config import EvalConfig, default_tau
from pfpeval.errors import EvaluationError
from pfpeval.evaluate import SEQ_METRICS, TERM_METRICS, seq_metric, term_metric
from pfpeval.extremum import CurveOptimum
from pfpeval.io import (load_annotation, load_ontology, load_prediction,
                        read_ia, read_item_list, weights_from_ia)
from pfpeval.logger import setup_logger
from pfpeval.metrics import parse_metric


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('--ontology-terms', required=True, help='term list, one term ID per line')
    parser.add_argument('--ontology-edges', default=None, help='child<TAB>parent edges of the ontology')
    parser.add_argument('--pred', required=True, help='predictions, object<TAB>term<TAB>score')
    parser.add_argument('--truth', required=True, help='reference annotations, object<TAB>term')
    parser.add_argument('--target', required=True, help='benchmark object list, one ID per line')
    parser.add_argument('--centric', choices=['seq', 'term'], default='seq')
    parser.add_argument('--metric', default='fmax',
                        help=f"seq: {', '.join(SEQ_METRICS)}; term: {', '.join(TERM_METRICS)}")
    parser.add_argument('--config', default=None, help='YAML file with evaluation options')
    parser.add_argument('--eval-mode', choices=['full', 'partial'], default=None)
    parser.add_argument('--avg-mode', choices=['macro', 'micro'], default=None)
    parser.add_argument('--tau-step', type=float, default=None, help='threshold step, default 0.01')
    parser.add_argument('--ia', default=None, help='IA file (term<TAB>value) used as term weights')
    parser.add_argument('--out', default=None, help='write the curve (or best point) as TSV')
    parser.add_argument('--log-dir', default=None)
    parser.add_argument('--date', default=None, help='provenance stamp stored with the results')
    return parser


def _options(args, ontology) -> dict:
    options = {}
    if args.eval_mode is not None:
        options['eval_mode'] = args.eval_mode
    if args.avg_mode is not None:
        options['avg_mode'] = args.avg_mode
    if args.tau_step is not None:
        options['tau'] = default_tau(args.tau_step)
    if args.ia is not None:
        options['weight'] = weights_from_ia(ontology, read_ia(args.ia))
    return options


def _result_frame(result, metric_tag, tau) -> pd.DataFrame:
    if isinstance(result, CurveOptimum):
        return pd.DataFrame([{'value': result.value, 'tau': result.tau,
                              'component_1': result.point[0], 'component_2': result.point[1]}])
    columns = list(parse_metric(metric_tag).columns)
    frame = pd.DataFrame(np.asarray(result), columns=columns)
    frame.insert(0, 'tau', tau)
    return frame


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger = setup_logger(args.log_dir)

    logger.info("=" * 60)
    logger.info(f"{args.centric}-centric evaluation: {args.metric}")
    logger.info("=" * 60)

    try:
        ontology = load_ontology(args.ontology_terms, args.ontology_edges)
        target = read_item_list(args.target)
        pred = load_prediction(args.pred, ontology)
        truth = load_annotation(args.truth, ontology)
        logger.info(f"{len(ontology)} terms, {len(target)} targets, "
                    f"{len(pred)} predicted objects, {len(truth)} annotated objects")

        config = EvalConfig.from_yaml(args.config) if args.config else EvalConfig()
        config = config.replace(**_options(args, ontology))

        if args.centric == 'seq':
            result = seq_metric(target, pred, truth, args.metric, config=config,
                                date=args.date, progress=True)
            metric_tag = SEQ_METRICS.get(args.metric)
        else:
            result = term_metric(target, pred, truth, args.metric, config=config,
                                 date=args.date, progress=True)
            metric_tag = TERM_METRICS.get(args.metric)
    except (EvaluationError, OSError, ValueError) as e:
        logger.error(f"Evaluation failed: {e}")
        return 1

    frame = _result_frame(result, metric_tag, config.tau)
    if isinstance(result, CurveOptimum):
        logger.info(f"{args.metric}: {result.value:.4f} at tau={result.tau:.2f}")
    else:
        logger.info(f"Curve with {len(frame)} points")
    if args.out:
        frame.to_csv(args.out, sep='\t', index=False)
        logger.info(f"Results saved to: {args.out}")
    else:
        print(frame.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
