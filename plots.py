#!/usr/bin/python
import os
import math
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import MultipleLocator


def plot_trigger_efficiencies(path,levels,report,fname=None):
    """
    Step and cumulative efficiency along a trigger path, with the
    Clopper-Pearson band as error bars. Levels with an undefined efficiency
    (NaN) are left out. Returns (fig, ax).
    """
    labels = [level.label for level in levels]
    x = np.arange(len(levels))
    fig, ax = plt.subplots(figsize=(8,5))
    for name,eff,err,col,off in [("step",report.step,report.step_err,"tab:blue",-0.1),
                                 ("cumulative",report.cumulative,report.cumulative_err,"tab:red",+0.1)]:
        ok = ~np.isnan(eff)
        if(not np.any(ok)): continue
        lo = np.clip(eff[ok]-err[ok][:,0],0.,None)
        hi = np.clip(err[ok][:,1]-eff[ok],0.,None)
        ax.errorbar(x[ok]+off,eff[ok],yerr=[lo,hi],fmt="o",color=col,label=name,capsize=3)
    ax.set_xticks(x)
    ax.set_xticklabels(labels,rotation=30,ha="right")
    ax.set_ylim(0.,1.05)
    ax.yaxis.set_minor_locator(MultipleLocator(0.05))
    ax.set_ylabel("Efficiency")
    ax.set_title(f"{path}: {report.pass_counts[0] if(len(report.pass_counts)>0) else 0} events at the first level")
    ax.grid(True,alpha=0.3)
    if(ax.get_legend_handles_labels()[0]): ax.legend(loc="lower left")
    fig.tight_layout()
    if(fname is not None):
        fig.savefig(fname)
        print(f"saved {fname}")
    return fig, ax


def plot_pass_counts(path,levels,report,fname=None):
    labels = [level.label for level in levels]
    x = np.arange(len(levels))
    fig, ax = plt.subplots(figsize=(8,5))
    ax.bar(x,report.pass_counts,color="tab:gray",edgecolor="black")
    ax.set_xticks(x)
    ax.set_xticklabels(labels,rotation=30,ha="right")
    ax.set_ylabel("Events passing")
    ax.set_title(f"{path}")
    fig.tight_layout()
    if(fname is not None):
        fig.savefig(fname)
        print(f"saved {fname}")
    return fig, ax


def plot_segment_efficiencies(reader,fname=None):
    types = reader.chamber_types()
    effs  = reader.efficiencies()
    kinds = ["found","found_rechits","good","good_rechits"]
    x = np.arange(len(types))
    width = 0.2
    fig, ax = plt.subplots(figsize=(10,5))
    for i,kind in enumerate(kinds):
        y = np.array([effs[t][kind] for t in types],dtype=float)
        ax.bar(x+(i-1.5)*width,np.nan_to_num(y),width,label=kind)
    ax.set_xticks(x)
    ax.set_xticklabels(types)
    ax.set_ylim(0.,1.1)
    ax.set_ylabel("Efficiency")
    ax.legend(ncol=2,loc="lower right")
    fig.tight_layout()
    if(fname is not None):
        fig.savefig(fname)
        print(f"saved {fname}")
    return fig, ax
