#!/usr/bin/python
import os
import math
import numpy as np
from scipy.stats import beta

import objects
from objects import *


### 1 sigma central interval
CL = 0.682689492137

def clopper_pearson(k,n,cl=CL):
    if(n<=0): return np.nan,np.nan
    alpha = 1.-cl
    lo = beta.ppf(alpha/2.,k,n-k+1) if(k>0) else 0.
    hi = beta.ppf(1.-alpha/2.,k+1,n-k) if(k<n) else 1.
    return float(lo),float(hi)


def ratio(num,den):
    return float(num)/float(den) if(den>0) else np.nan


#############################################
### jet-level monitoring along the path

def delta_phi(phi1,phi2):
    return (phi1-phi2+np.pi)%(2.*np.pi)-np.pi


def delta_r(eta1,phi1,eta2,phi2):
    return np.hypot(eta1-eta2,delta_phi(phi1,phi2))


def closest_jet(jet,candidates,radius):
    ### index of the (Jet,value) candidate closest in dR, -1 if none inside radius
    if(len(candidates)==0): return -1
    etas = np.array([c[0].eta for c in candidates],dtype=float)
    phis = np.array([c[0].phi for c in candidates],dtype=float)
    dr = delta_r(jet.eta,jet.phi,etas,phis)
    closest = int(np.argmin(dr))
    return closest if(dr[closest]<radius) else -1


class JetPlots:
    """
    Jet Et/eta/phi plots of one trigger level: all jets, jets split by the
    flavour of the matched generator parton, and jets whose matched offline
    b-tag discriminator is above each working point.

    Histograms are looked up by key, e.g. "jets_et", "mc_b_eta",
    "offline_medium_phi"; keys that are not booked are skipped.
    """
    VARIABLES = ["et","eta","phi"]

    def __init__(self,name,title="",flavours=None,cuts=None,histos=None):
        self.name     = name
        self.title    = title if(title) else name
        self.flavours = flavours if(flavours is not None) else {} ### label -> list of |flavour|
        self.cuts     = cuts if(cuts is not None) else {}         ### label -> discriminator cut
        self.histos   = histos if(histos is not None) else {}
        self.njets    = 0

    def groups(self):
        return ["jets"]+[f"mc_{label}" for label in self.flavours]+[f"offline_{label}" for label in self.cuts]

    def keys(self):
        return [f"{group}_{var}" for group in self.groups() for var in JetPlots.VARIABLES]

    def fill_group(self,group,jet):
        for var in JetPlots.VARIABLES:
            h = self.histos.get(f"{group}_{var}")
            if(h is not None): h.Fill(getattr(jet,var))

    def fill(self,jet,flavour=0,discriminator=-np.inf):
        self.njets += 1
        self.fill_group("jets",jet)
        for label,flavours in self.flavours.items():
            if(flavour in flavours): self.fill_group(f"mc_{label}",jet)
        for label,cut in self.cuts.items():
            if(discriminator>=cut): self.fill_group(f"offline_{label}",jet)


class EfficiencyReport:
    """
    Per-level pass counts of one trigger path and the efficiencies derived
    from them. Index 0 of the step and cumulative arrays has no preceding
    level and is always NaN.
    """
    def __init__(self,pass_counts):
        self.pass_counts = np.array(pass_counts,dtype=int)
        nlevels = len(self.pass_counts)
        self.step       = np.full(nlevels,np.nan)
        self.cumulative = np.full(nlevels,np.nan)
        self.step_err       = np.full((nlevels,2),np.nan)
        self.cumulative_err = np.full((nlevels,2),np.nan)
        for i in range(1,nlevels):
            nprev  = self.pass_counts[i-1]
            nfirst = self.pass_counts[0]
            self.step[i]       = ratio(self.pass_counts[i],nprev)
            self.cumulative[i] = ratio(self.pass_counts[i],nfirst)
            self.step_err[i]       = clopper_pearson(self.pass_counts[i],nprev)
            self.cumulative_err[i] = clopper_pearson(self.pass_counts[i],nfirst)
    def __str__(self):
        return f"EfficiencyReport: counts={list(self.pass_counts)}, step={list(self.step)}, cumulative={list(self.cumulative)}"


class TriggerChainCounter:
    def __init__(self,path,levels,verbose=0,mc_radius=0.3,offline_radius=0.3):
        self.path        = path
        self.levels      = list(levels)
        self.verbose     = verbose
        self.pass_counts = [0]*len(self.levels)
        self.path_modules = []
        self.path_index   = -1
        self.path_cached  = False
        self.mc_radius      = mc_radius
        self.offline_radius = offline_radius
        self.jet_plots      = []  ### one JetPlots per level, empty when not booked
        self.vertex_histos  = {}

    def attach_plots(self,jet_plots,vertex_histos=None):
        self.jet_plots     = list(jet_plots)
        self.vertex_histos = vertex_histos if(vertex_histos is not None) else {}

    def cache_path_description(self,trigger_paths,path_modules):
        ### find the path and the index of each level's filter along it
        if(self.path_cached): return True
        if(self.path not in trigger_paths):
            print(f"cannot find HLT path {self.path}")
            return False
        self.path_index   = list(trigger_paths).index(self.path)
        self.path_modules = list(path_modules)
        resolved = []
        for level in self.levels:
            if(level.filter in self.path_modules):
                index = self.path_modules.index(level.filter)
                print(f"filter {level.filter} has index {index} in path {self.path}")
            else:
                index = 0
                print(f"filter {level.filter} not found in path {self.path}")
            resolved.append( TriggerLevel(level.name,level.filter,level.title,index) )
        self.levels = resolved
        self.path_cached = True
        return True

    def update(self,accepted,stopped_at):
        ### returns the number of levels passed, the following filters were never reached
        npassed = 0
        for i,level in enumerate(self.levels):
            passed = accepted or (stopped_at>level.filter_index)
            if(not passed): break
            self.pass_counts[i] += 1
            npassed += 1
        return npassed

    def fill_vertex(self,vertex):
        if(vertex is None): return
        for var in ["x","y","z"]:
            h = self.vertex_histos.get(f"vertex_{var}")
            if(h is not None): h.Fill(getattr(vertex,var))

    def fill_jets(self,result,npassed):
        for i in range(min(npassed,len(self.jet_plots))):
            level = self.levels[i]
            for jet in result.jets.get(level.name,[]):
                m = closest_jet(jet,result.partons,self.mc_radius)
                flavour = abs(result.partons[m][1]) if(m!=-1) else 0
                o = closest_jet(jet,result.tags,self.offline_radius)
                discriminator = result.tags[o][1] if(o!=-1) else -np.inf
                self.jet_plots[i].fill(jet,flavour,discriminator)

    def analyze(self,result):
        if(not self.path_cached):
            print(f"unable to access trigger informations and description for path {self.path}")
            return False
        if(result.index>=len(self.path_modules)):
            print("error determinig the path stopping condition: module position exceeds path length")
            return False
        if(self.verbose>1):
            if(not result.wasrun):    print(f"  path {self.path} was not run")
            elif(result.accepted):    print(f"  path {self.path} accepted the event")
            else:                     print(f"  path {self.path} rejected the event at module {self.path_modules[result.index]}")
        self.fill_vertex(result.vertex)
        npassed = self.update(result.accepted,result.index)
        self.fill_jets(result,npassed)
        return True

    def level_status(self,result):
        status = []
        for level in self.levels:
            passed = result.accepted or (result.index>level.filter_index)
            failed = (not result.accepted) and (result.index==level.filter_index)
            status.append( "passed" if(passed) else ("failed" if(failed) else "not run") )
        return status

    def report(self):
        return EfficiencyReport(self.pass_counts)

    def format_report(self,report=None):
        if(report is None): report = self.report()
        lines = [f"{self.path} HLT Trigger path",""]
        for i,level in enumerate(self.levels):
            lines.append( f"{self.path}:" + f"{'events passing '+level.label:<64}" + f"{report.pass_counts[i]:>12}" )
        for i in range(1,len(self.levels)):
            lines.append( f"{self.path}:" + f"{'step efficiency at '+self.levels[i].label:<64}" + format_percent(report.step[i]) )
        for i in range(1,len(self.levels)):
            lines.append( f"{self.path}:" + f"{'cumulative efficiency at '+self.levels[i].label:<64}" + format_percent(report.cumulative[i]) )
        return lines

    def print_report(self):
        for line in self.format_report(): print(line)
        print("")


def format_percent(eff):
    if(np.isnan(eff)): return f"{'NaN':>12}"
    return f"{eff*100.:>11.2f}%"
